from __future__ import annotations

from app.game.challenges.progression import (
    build_progression_plan,
    fallback_levels,
    role_for_position,
)


def test_role_for_position_alternates_by_parity() -> None:
    assert [role_for_position(position) for position in range(4)] == [
        "creator",
        "partner",
        "creator",
        "partner",
    ]


def test_build_progression_plan_climbs_from_start_intensity_for_free_tier() -> None:
    plan = build_progression_plan(count=10, start_intensity=1, is_premium=False)

    assert [slot.level for slot in plan] == [1, 1, 1, 1, 2, 2, 2, 3, 3, 3]
    assert [slot.position for slot in plan] == list(range(10))
    assert {slot.role for slot in plan[::2]} == {"creator"}
    assert {slot.role for slot in plan[1::2]} == {"partner"}


def test_build_progression_plan_reaches_level_four_only_for_premium() -> None:
    premium = build_progression_plan(count=10, start_intensity=2, is_premium=True)
    free = build_progression_plan(count=10, start_intensity=2, is_premium=False)

    assert [slot.level for slot in premium] == [2, 2, 2, 2, 3, 3, 3, 4, 4, 4]
    assert [slot.level for slot in free] == [2, 2, 2, 2, 3, 3, 3, 3, 3, 3]


def test_build_progression_plan_caps_start_intensity_at_accessible_level() -> None:
    plan = build_progression_plan(count=4, start_intensity=4, is_premium=False)
    assert {slot.level for slot in plan} == {3}


def test_build_progression_plan_returns_empty_plan_for_zero_count() -> None:
    assert build_progression_plan(count=0, start_intensity=1, is_premium=False) == []


def test_fallback_levels_prefers_lower_levels_then_higher() -> None:
    assert fallback_levels(3, max_level=4) == [2, 1, 4]
    assert fallback_levels(1, max_level=3) == [2, 3]
    assert fallback_levels(4, max_level=4) == [3, 2, 1]
