from __future__ import annotations

from collections.abc import Sequence

from app.game.challenges.types import PLAYER_ROLES, SessionChallenge


def calculate_progress(*, completed: int, total: int) -> int:
    """Completion percentage rounded half up, 0 for empty sessions."""
    if total <= 0:
        return 0
    bounded = min(max(0, completed), total)
    return (bounded * 200 + total) // (2 * total)


def session_progress(challenges: Sequence[SessionChallenge], *, challenge_count: int) -> int:
    completed = sum(1 for challenge in challenges if challenge.completed)
    return calculate_progress(completed=completed, total=challenge_count)


def completion_by_level(challenges: Sequence[SessionChallenge]) -> dict[int, dict[str, int]]:
    table: dict[int, dict[str, int]] = {}
    for challenge in challenges:
        row = table.setdefault(challenge.level, {"total": 0, "completed": 0})
        row["total"] += 1
        if challenge.completed:
            row["completed"] += 1
    return dict(sorted(table.items()))


def count_remaining(challenges: Sequence[SessionChallenge]) -> dict[str, int]:
    remaining = {role: 0 for role in PLAYER_ROLES}
    for challenge in challenges:
        if not challenge.completed:
            remaining[challenge.for_player] = remaining.get(challenge.for_player, 0) + 1
    return remaining
