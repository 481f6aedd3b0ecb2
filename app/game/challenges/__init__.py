from app.game.challenges.selection import get_alternatives, select_challenges
from app.game.challenges.types import (
    ChallengeTemplate,
    MediaPreferences,
    PlayerPreferences,
    SelectionConfig,
    SelectionResult,
    SessionChallenge,
)

__all__ = [
    "ChallengeTemplate",
    "MediaPreferences",
    "PlayerPreferences",
    "SelectionConfig",
    "SelectionResult",
    "SessionChallenge",
    "get_alternatives",
    "select_challenges",
]
