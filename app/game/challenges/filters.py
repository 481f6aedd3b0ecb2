from __future__ import annotations

from collections.abc import Iterable, Sequence

from app.game.challenges.types import (
    CLASSIC_THEME,
    INTENSITY_LEVELS,
    ChallengeTemplate,
    PlayerPreferences,
)


def filter_by_themes(
    templates: Sequence[ChallengeTemplate],
    *,
    selected_themes: Iterable[str],
) -> list[ChallengeTemplate]:
    """Keeps the selected themes and backfills empty levels with classic content."""
    themes = {theme.lower() for theme in selected_themes}
    matched = [template for template in templates if template.theme.lower() in themes]
    if CLASSIC_THEME in themes:
        return matched

    levels_with_matches = {template.level for template in matched}
    for level in INTENSITY_LEVELS:
        if level in levels_with_matches:
            continue
        matched.extend(
            template
            for template in templates
            if template.level == level and template.theme.lower() == CLASSIC_THEME
        )
    return matched


def filter_by_toys(
    templates: Sequence[ChallengeTemplate],
    *,
    include_toys: bool,
    available_toys: Iterable[str],
) -> list[ChallengeTemplate]:
    if not include_toys:
        return [template for template in templates if not template.has_toy]
    owned = {toy.lower() for toy in available_toys}
    return [
        template
        for template in templates
        if not template.has_toy or (template.toy_name or "").lower() in owned
    ]


def filter_by_media(
    templates: Sequence[ChallengeTemplate],
    *,
    allowed_media_types: frozenset[str],
) -> list[ChallengeTemplate]:
    return [template for template in templates if template.media_type in allowed_media_types]


def filter_by_max_level(
    templates: Sequence[ChallengeTemplate],
    *,
    max_level: int,
) -> list[ChallengeTemplate]:
    return [template for template in templates if template.level <= max_level]


def filter_pool_for_player(
    pool: Sequence[ChallengeTemplate],
    *,
    gender: str,
    preferences: PlayerPreferences,
    max_level: int,
) -> list[ChallengeTemplate]:
    candidates = [template for template in pool if template.gender == gender]
    candidates = filter_by_themes(candidates, selected_themes=preferences.selected_themes)
    candidates = filter_by_toys(
        candidates,
        include_toys=preferences.include_toys,
        available_toys=preferences.available_toys,
    )
    candidates = filter_by_media(
        candidates,
        allowed_media_types=preferences.media.allowed_media_types(),
    )
    return filter_by_max_level(candidates, max_level=max_level)
