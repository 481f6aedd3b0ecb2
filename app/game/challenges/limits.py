from __future__ import annotations

import math

FREE_MAX_PER_PLAYER = 15
PREMIUM_MAX_PER_PLAYER = 25
MIN_TOTAL_CHALLENGES = 2

FREE_MAX_LEVEL = 3
PREMIUM_MAX_LEVEL = 4
MIN_LEVEL = 1


def per_player_count(total: int) -> int:
    return math.ceil(total / 2)


def max_accessible_level(is_premium: bool) -> int:
    return PREMIUM_MAX_LEVEL if is_premium else FREE_MAX_LEVEL


def exceeds_free_challenge_limit(total: int) -> bool:
    # 15 per player is still free; only 16+ needs premium.
    return per_player_count(total) > FREE_MAX_PER_PLAYER


def exceeds_premium_challenge_limit(total: int) -> bool:
    return per_player_count(total) > PREMIUM_MAX_PER_PLAYER


def requires_premium_intensity(start_intensity: int) -> bool:
    return start_intensity > FREE_MAX_LEVEL


def is_level_accessible(level: int, *, is_premium: bool) -> bool:
    return MIN_LEVEL <= level <= max_accessible_level(is_premium)
