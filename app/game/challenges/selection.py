from __future__ import annotations

import random
from collections import Counter, defaultdict
from collections.abc import Sequence

import structlog

from app.game.challenges.catalog import get_challenge_pool
from app.game.challenges.filters import filter_pool_for_player
from app.game.challenges.limits import max_accessible_level
from app.game.challenges.progression import build_progression_plan, fallback_levels
from app.game.challenges.types import (
    PLAYER_ROLES,
    ChallengeTemplate,
    SelectionConfig,
    SelectionResult,
    SelectionStats,
    SessionChallenge,
)

logger = structlog.get_logger(__name__)

MAX_ALTERNATIVES = 2


def _build_rng(seed: str | None) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


def _group_by_level(
    templates: Sequence[ChallengeTemplate],
    *,
    rng: random.Random,
) -> dict[int, list[ChallengeTemplate]]:
    grouped: dict[int, list[ChallengeTemplate]] = defaultdict(list)
    for template in templates:
        grouped[template.level].append(template)
    for bucket in grouped.values():
        rng.shuffle(bucket)
    return grouped


def _draw_unused(
    bucket: list[ChallengeTemplate],
    *,
    used_ids: set[str],
    used_texts: set[str],
) -> ChallengeTemplate | None:
    # A prompt counts as used by id or by wording, whichever repeats first.
    while bucket:
        template = bucket.pop()
        if template.template_id not in used_ids and template.text not in used_texts:
            return template
    return None


def _build_stats(challenges: Sequence[SessionChallenge], *, requested: int) -> SelectionStats:
    by_level: Counter[int] = Counter(challenge.level for challenge in challenges)
    by_media_type: Counter[str] = Counter(challenge.media_type for challenge in challenges)
    by_role: Counter[str] = Counter(challenge.for_player for challenge in challenges)
    return SelectionStats(
        by_level=dict(sorted(by_level.items())),
        by_media_type=dict(sorted(by_media_type.items())),
        by_role={role: by_role.get(role, 0) for role in PLAYER_ROLES},
        requested=requested,
        selected=len(challenges),
    )


def select_challenges(
    config: SelectionConfig,
    *,
    pool: Sequence[ChallengeTemplate] | None = None,
) -> SelectionResult:
    """Builds the ordered challenge list for a new session.

    Positions alternate creator/partner by parity and climb in intensity as the
    session progresses. A position that cannot be filled at any reachable level
    is skipped with a warning, so callers get fewer challenges than requested
    instead of an error.
    """
    resolved_pool = get_challenge_pool() if pool is None else pool
    rng = _build_rng(config.selection_seed)
    max_level = max_accessible_level(config.is_premium)
    plan = build_progression_plan(
        count=config.challenge_count,
        start_intensity=config.start_intensity,
        is_premium=config.is_premium,
    )

    buckets_by_role = {
        role: _group_by_level(
            filter_pool_for_player(
                resolved_pool,
                gender=config.gender_for(role),
                preferences=config.preferences_for(role),
                max_level=max_level,
            ),
            rng=rng,
        )
        for role in PLAYER_ROLES
    }

    used_ids: set[str] = set()
    used_texts: set[str] = set()
    challenges: list[SessionChallenge] = []
    warnings: list[str] = []
    for slot in plan:
        buckets = buckets_by_role[slot.role]
        template = None
        for level in (slot.level, *fallback_levels(slot.level, max_level=max_level)):
            template = _draw_unused(
                buckets.get(level, []),
                used_ids=used_ids,
                used_texts=used_texts,
            )
            if template is not None:
                break
        if template is None:
            warnings.append(
                f"position {slot.position}: no {slot.role} challenge available "
                f"around level {slot.level}"
            )
            continue
        used_ids.add(template.template_id)
        used_texts.add(template.text)
        challenges.append(SessionChallenge.from_template(template, for_player=slot.role))

    stats = _build_stats(challenges, requested=config.challenge_count)
    if warnings:
        logger.warning(
            "challenge_selection_incomplete",
            requested=stats.requested,
            selected=stats.selected,
            warnings_total=len(warnings),
        )
    return SelectionResult(challenges=challenges, stats=stats, warnings=warnings)


def get_alternatives(
    current_challenges: Sequence[SessionChallenge],
    index: int,
    config: SelectionConfig,
    *,
    pool: Sequence[ChallengeTemplate] | None = None,
    limit: int = MAX_ALTERNATIVES,
) -> list[SessionChallenge]:
    """Returns up to ``limit`` replacements for the challenge at ``index``.

    Candidates come from the performer's preferences, at the same gender and
    level, excluding any prompt already used in the session. Candidates with a
    different media type are offered first.
    """
    if index < 0 or index >= len(current_challenges):
        return []
    current = current_challenges[index]
    resolved_pool = get_challenge_pool() if pool is None else pool
    rng = _build_rng(config.selection_seed)

    used_texts = {challenge.text for challenge in current_challenges}
    candidates = [
        template
        for template in filter_pool_for_player(
            resolved_pool,
            gender=current.for_gender,
            preferences=config.preferences_for(current.for_player),
            max_level=max_accessible_level(config.is_premium),
        )
        if template.level == current.level and template.text not in used_texts
    ]
    rng.shuffle(candidates)
    # Stable sort keeps the shuffle within each group.
    candidates.sort(key=lambda template: template.media_type == current.media_type)
    return [
        SessionChallenge.from_template(template, for_player=current.for_player)
        for template in candidates[: max(0, limit)]
    ]
