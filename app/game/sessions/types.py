from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.core.session_codes import format_session_code
from app.game.challenges.types import PlayerPreferences, SelectionStats, SessionChallenge
from app.game.sessions.errors import ErrorCode, ErrorKind


@dataclass(slots=True)
class PendingPartnerChallenge:
    created_by: str
    for_player: str
    created_at: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "created_by": self.created_by,
            "for_player": self.for_player,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(slots=True)
class SessionSnapshot:
    code: str
    status: str
    creator_user_id: str
    creator_gender: str
    partner_user_id: str | None
    partner_gender: str | None
    challenge_count: int
    start_intensity: int
    current_challenge_index: int
    current_player: str
    challenges: list[SessionChallenge]
    changes_used: dict[str, int]
    bonus_changes: dict[str, int]
    creator_preferences: PlayerPreferences
    partner_preferences: PlayerPreferences | None
    pending_partner_challenge: PendingPartnerChallenge | None
    version: int
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def display_code(self) -> str:
        return format_session_code(self.code)

    @property
    def current_challenge(self) -> SessionChallenge | None:
        if 0 <= self.current_challenge_index < len(self.challenges):
            return self.challenges[self.current_challenge_index]
        return None

    def to_payload(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "display_code": self.display_code,
            "status": self.status,
            "creator_user_id": self.creator_user_id,
            "creator_gender": self.creator_gender,
            "partner_user_id": self.partner_user_id,
            "partner_gender": self.partner_gender,
            "challenge_count": self.challenge_count,
            "start_intensity": self.start_intensity,
            "current_challenge_index": self.current_challenge_index,
            "current_player": self.current_player,
            "challenges": [challenge.to_payload() for challenge in self.challenges],
            "changes_used": dict(self.changes_used),
            "bonus_changes": dict(self.bonus_changes),
            "creator_preferences": self.creator_preferences.to_payload(),
            "partner_preferences": (
                self.partner_preferences.to_payload() if self.partner_preferences else None
            ),
            "pending_partner_challenge": (
                self.pending_partner_challenge.to_payload()
                if self.pending_partner_challenge
                else None
            ),
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass(slots=True)
class ChangeQuota:
    remaining: int | None
    total: int | None
    is_unlimited: bool
    bonus_changes: int
    max_bonus: int
    can_watch_ad: bool

    def to_payload(self) -> dict[str, Any]:
        return {
            "remaining": self.remaining,
            "total": self.total,
            "is_unlimited": self.is_unlimited,
            "bonus_changes": self.bonus_changes,
            "max_bonus": self.max_bonus,
            "can_watch_ad": self.can_watch_ad,
        }


@dataclass(slots=True)
class CreateSessionResult:
    snapshot: SessionSnapshot
    warnings: list[str] = field(default_factory=list)
    stats: SelectionStats | None = None

    @property
    def code(self) -> str:
        return self.snapshot.code


@dataclass(slots=True)
class SessionMutationResult:
    snapshot: SessionSnapshot


@dataclass(slots=True)
class SessionDeleteResult:
    code: str


@dataclass(slots=True)
class CompleteChallengeResult:
    snapshot: SessionSnapshot
    completed_index: int
    next_challenge: SessionChallenge | None
    next_index: int | None
    is_game_over: bool
    progress: int


@dataclass(slots=True)
class ChangeChallengeResult:
    alternatives: list[SessionChallenge]
    quota: ChangeQuota


@dataclass(slots=True)
class SwapChallengeResult:
    snapshot: SessionSnapshot
    replaced_index: int
    quota: ChangeQuota


@dataclass(slots=True)
class BonusChangeResult:
    snapshot: SessionSnapshot
    bonus_total: int
    max_bonus: int


@dataclass(slots=True)
class OperationResult:
    """Tagged outcome returned by every call on the session facade."""

    success: bool
    data: Any = None
    error: str | None = None
    code: ErrorCode | None = None
    kind: ErrorKind | None = None

    @property
    def retryable(self) -> bool:
        return self.kind == ErrorKind.TRANSIENT

    @classmethod
    def ok(cls, data: Any = None) -> OperationResult:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        *,
        code: ErrorCode,
        kind: ErrorKind,
        error: str,
        data: Any = None,
    ) -> OperationResult:
        return cls(success=False, data=data, error=error, code=code, kind=kind)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        if self.code is not None:
            payload["code"] = self.code.value
        return payload
