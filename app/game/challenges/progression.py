from __future__ import annotations

from app.game.challenges.limits import max_accessible_level
from app.game.challenges.types import PlannedSlot


def role_for_position(position: int) -> str:
    return "creator" if position % 2 == 0 else "partner"


def level_for_position(
    position: int,
    *,
    count: int,
    start_intensity: int,
    max_level: int,
) -> int:
    start = min(start_intensity, max_level)
    progress = position / count
    if progress < 0.4:
        return start
    if progress < 0.7:
        return min(start + 1, max_level)
    if progress < 0.9:
        return min(start + 2, max_level)
    return max_level


def build_progression_plan(
    *,
    count: int,
    start_intensity: int,
    is_premium: bool,
) -> list[PlannedSlot]:
    if count <= 0:
        return []
    max_level = max_accessible_level(is_premium)
    return [
        PlannedSlot(
            position=position,
            role=role_for_position(position),
            level=level_for_position(
                position,
                count=count,
                start_intensity=start_intensity,
                max_level=max_level,
            ),
        )
        for position in range(count)
    ]


def fallback_levels(target_level: int, *, max_level: int) -> list[int]:
    """Nearest lower levels first, then nearest higher levels up to ``max_level``."""
    lower = list(range(target_level - 1, 0, -1))
    higher = list(range(target_level + 1, max_level + 1))
    return lower + higher
