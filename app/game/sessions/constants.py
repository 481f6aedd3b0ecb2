from __future__ import annotations

SESSION_STATUS_WAITING = "waiting"
SESSION_STATUS_ACTIVE = "active"
SESSION_STATUS_COMPLETED = "completed"
SESSION_STATUS_ABANDONED = "abandoned"

SESSION_FINISHED_STATUSES: frozenset[str] = frozenset(
    {
        SESSION_STATUS_COMPLETED,
        SESSION_STATUS_ABANDONED,
    }
)
SESSION_LIVE_STATUSES: frozenset[str] = frozenset(
    {
        SESSION_STATUS_WAITING,
        SESSION_STATUS_ACTIVE,
    }
)
SESSION_DELETABLE_STATUSES: frozenset[str] = frozenset(
    {
        SESSION_STATUS_WAITING,
        SESSION_STATUS_COMPLETED,
        SESSION_STATUS_ABANDONED,
    }
)

ROLE_CREATOR = "creator"
ROLE_PARTNER = "partner"

MAX_CHALLENGE_CHANGES = 3
MAX_BONUS_CHANGES = 3

SESSION_CODE_MAX_ATTEMPTS = 10
SESSION_HISTORY_DEFAULT_LIMIT = 20
SESSION_LIST_MAX_LIMIT = 100

PARTNER_CHALLENGE_MIN_LENGTH = 10
PARTNER_CHALLENGE_MAX_LENGTH = 500
PARTNER_CHALLENGE_DEFAULT_LEVEL = 2
PARTNER_CHALLENGE_DEFAULT_MEDIA_TYPE = "text"
PARTNER_CHALLENGE_THEME = "custom"


def opposite_role(role: str) -> str:
    return ROLE_PARTNER if role == ROLE_CREATOR else ROLE_CREATOR
