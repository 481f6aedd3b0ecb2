#!/usr/bin/env python3
"""Print challenge pool statistics and check per-level classic coverage."""

from __future__ import annotations

import argparse
import json

from app.game.challenges.catalog import get_challenge_pool, list_themes, pool_stats
from app.game.challenges.selection import select_challenges
from app.game.challenges.types import (
    CLASSIC_THEME,
    GENDERS,
    INTENSITY_LEVELS,
    PlayerPreferences,
    SelectionConfig,
)


def find_coverage_gaps() -> list[str]:
    """Lists gender/level pairs without classic content, which would defeat theme fallback."""
    covered = {
        (template.gender, template.level)
        for template in get_challenge_pool()
        if template.theme == CLASSIC_THEME
    }
    return [
        f"{gender}/level {level}"
        for gender in GENDERS
        for level in INTENSITY_LEVELS
        if (gender, level) not in covered
    ]


def _simulate(args: argparse.Namespace) -> dict[str, object]:
    themes = tuple(args.themes.split(",")) if args.themes else (CLASSIC_THEME,)
    result = select_challenges(
        SelectionConfig(
            creator_gender=args.creator_gender,
            partner_gender=args.partner_gender,
            challenge_count=args.count,
            start_intensity=args.start_intensity,
            is_premium=args.premium,
            creator_preferences=PlayerPreferences(selected_themes=themes),
            partner_preferences=PlayerPreferences(selected_themes=themes),
            selection_seed=args.seed,
        )
    )
    return {
        "requested": result.stats.requested,
        "selected": result.stats.selected,
        "by_level": {str(level): count for level, count in result.stats.by_level.items()},
        "by_media_type": result.stats.by_media_type,
        "by_role": result.stats.by_role,
        "warnings": result.warnings,
    }


def _print_text(report: dict[str, object]) -> None:
    for key, value in report.items():
        print(f"{key}: {value}")  # noqa: T201


def main() -> int:
    parser = argparse.ArgumentParser(description="Challenge pool report.")
    parser.add_argument("--format", choices=["text", "json"], default="text")
    parser.add_argument("--check-coverage", action="store_true")
    parser.add_argument("--simulate", action="store_true")
    parser.add_argument("--count", type=int, default=10)
    parser.add_argument("--start-intensity", type=int, default=1, choices=INTENSITY_LEVELS)
    parser.add_argument("--premium", action="store_true")
    parser.add_argument("--creator-gender", choices=GENDERS, default="male")
    parser.add_argument("--partner-gender", choices=GENDERS, default="female")
    parser.add_argument("--themes", default="")
    parser.add_argument("--seed", default=None)
    args = parser.parse_args()

    report: dict[str, object] = dict(pool_stats())
    report["by_level"] = {str(level): count for level, count in report["by_level"].items()}
    report["themes"] = list(list_themes())
    gaps = find_coverage_gaps()
    report["coverage_gaps"] = gaps
    if args.simulate:
        report["simulation"] = _simulate(args)

    if args.format == "json":
        print(json.dumps(report, indent=2, sort_keys=True))  # noqa: T201
    else:
        _print_text(report)

    if args.check_coverage and gaps:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
