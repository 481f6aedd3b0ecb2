from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.session_codes import is_valid_session_code, normalize_session_code
from app.db.models.game_sessions import GameSession
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.game.challenges.types import PlayerPreferences, SessionChallenge
from app.game.sessions.constants import (
    MAX_BONUS_CHANGES,
    MAX_CHALLENGE_CHANGES,
    ROLE_CREATOR,
    ROLE_PARTNER,
    SESSION_STATUS_ABANDONED,
    SESSION_STATUS_ACTIVE,
    SESSION_STATUS_COMPLETED,
    SESSION_STATUS_WAITING,
)
from app.game.sessions.errors import (
    ChallengeNotFoundError,
    InvalidSessionCodeError,
    NotSessionMemberError,
    SessionAbandonedError,
    SessionCompletedError,
    SessionNotActiveError,
    SessionNotFoundError,
)
from app.game.sessions.types import ChangeQuota, PendingPartnerChallenge, SessionSnapshot


def _ensure_aware(value: datetime | None) -> datetime | None:
    # Some drivers hand back naive values for timezone-aware columns; they are UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize_code_or_raise(code: str) -> str:
    normalized = normalize_session_code(code)
    if not is_valid_session_code(normalized):
        raise InvalidSessionCodeError
    return normalized


async def _load_session_or_raise(session: AsyncSession, *, code: str) -> GameSession:
    normalized = _normalize_code_or_raise(code)
    game_session = await GameSessionsRepo.get_by_code(session, normalized)
    if game_session is None:
        raise SessionNotFoundError
    return game_session


def _resolve_role(game_session: GameSession, *, user_id: str) -> str | None:
    if game_session.creator_user_id == user_id:
        return ROLE_CREATOR
    if game_session.partner_user_id is not None and game_session.partner_user_id == user_id:
        return ROLE_PARTNER
    return None


def _require_member_role(game_session: GameSession, *, user_id: str) -> str:
    role = _resolve_role(game_session, user_id=user_id)
    if role is None:
        raise NotSessionMemberError
    return role


def _user_id_for_role(game_session: GameSession, *, role: str) -> str | None:
    return game_session.creator_user_id if role == ROLE_CREATOR else game_session.partner_user_id


def _require_active(game_session: GameSession) -> None:
    if game_session.status == SESSION_STATUS_ACTIVE:
        return
    if game_session.status == SESSION_STATUS_COMPLETED:
        raise SessionCompletedError
    if game_session.status == SESSION_STATUS_ABANDONED:
        raise SessionAbandonedError
    raise SessionNotActiveError


def _read_challenges(game_session: GameSession) -> list[SessionChallenge]:
    challenges = [SessionChallenge.from_payload(item) for item in game_session.challenges or []]
    for challenge in challenges:
        challenge.completed_at = _ensure_aware(challenge.completed_at)
    return challenges


def _write_challenges(game_session: GameSession, challenges: Sequence[SessionChallenge]) -> None:
    # A fresh list is assigned so the JSON column is flagged dirty.
    game_session.challenges = [challenge.to_payload() for challenge in challenges]


def _read_preferences(game_session: GameSession, *, role: str) -> PlayerPreferences:
    payload = (
        game_session.creator_preferences
        if role == ROLE_CREATOR
        else game_session.partner_preferences
    )
    return PlayerPreferences.from_payload(payload)


def _changes_used(game_session: GameSession, *, role: str) -> int:
    if role == ROLE_CREATOR:
        return int(game_session.creator_changes_used or 0)
    return int(game_session.partner_changes_used or 0)


def _bonus_changes(game_session: GameSession, *, role: str) -> int:
    if role == ROLE_CREATOR:
        return int(game_session.creator_bonus_changes or 0)
    return int(game_session.partner_bonus_changes or 0)


def _increment_changes_used(game_session: GameSession, *, role: str) -> None:
    if role == ROLE_CREATOR:
        game_session.creator_changes_used = _changes_used(game_session, role=role) + 1
    else:
        game_session.partner_changes_used = _changes_used(game_session, role=role) + 1


def _increment_bonus_changes(game_session: GameSession, *, role: str) -> int:
    total = _bonus_changes(game_session, role=role) + 1
    if role == ROLE_CREATOR:
        game_session.creator_bonus_changes = total
    else:
        game_session.partner_bonus_changes = total
    return total


def _build_change_quota(game_session: GameSession, *, role: str, is_premium: bool) -> ChangeQuota:
    bonus = _bonus_changes(game_session, role=role)
    if is_premium:
        return ChangeQuota(
            remaining=None,
            total=None,
            is_unlimited=True,
            bonus_changes=bonus,
            max_bonus=MAX_BONUS_CHANGES,
            can_watch_ad=False,
        )
    total = MAX_CHALLENGE_CHANGES + bonus
    return ChangeQuota(
        remaining=max(0, total - _changes_used(game_session, role=role)),
        total=total,
        is_unlimited=False,
        bonus_changes=bonus,
        max_bonus=MAX_BONUS_CHANGES,
        can_watch_ad=bonus < MAX_BONUS_CHANGES,
    )


def _join_window_closes_at(game_session: GameSession, *, join_ttl_hours: int) -> datetime:
    created_at = _ensure_aware(game_session.created_at)
    return created_at + timedelta(hours=max(1, int(join_ttl_hours)))


def _is_join_window_expired(
    game_session: GameSession,
    *,
    now_utc: datetime,
    join_ttl_hours: int,
) -> bool:
    if game_session.status != SESSION_STATUS_WAITING:
        return False
    return now_utc > _join_window_closes_at(game_session, join_ttl_hours=join_ttl_hours)


def _touch(game_session: GameSession, *, now_utc: datetime) -> None:
    game_session.updated_at = now_utc


def _build_pending_partner_challenge(
    game_session: GameSession,
) -> PendingPartnerChallenge | None:
    if game_session.pending_challenge_created_by is None:
        return None
    return PendingPartnerChallenge(
        created_by=game_session.pending_challenge_created_by,
        for_player=game_session.pending_challenge_for_player or ROLE_PARTNER,
        created_at=_ensure_aware(game_session.pending_challenge_created_at)
        or _ensure_aware(game_session.updated_at),
    )


def _clear_pending_partner_challenge(game_session: GameSession) -> None:
    game_session.pending_challenge_created_by = None
    game_session.pending_challenge_for_player = None
    game_session.pending_challenge_created_at = None


def _build_session_snapshot(game_session: GameSession) -> SessionSnapshot:
    return SessionSnapshot(
        code=game_session.code,
        status=game_session.status,
        creator_user_id=game_session.creator_user_id,
        creator_gender=game_session.creator_gender,
        partner_user_id=game_session.partner_user_id,
        partner_gender=game_session.partner_gender,
        challenge_count=int(game_session.challenge_count),
        start_intensity=int(game_session.start_intensity),
        current_challenge_index=int(game_session.current_challenge_index),
        current_player=game_session.current_player,
        challenges=_read_challenges(game_session),
        changes_used={
            ROLE_CREATOR: _changes_used(game_session, role=ROLE_CREATOR),
            ROLE_PARTNER: _changes_used(game_session, role=ROLE_PARTNER),
        },
        bonus_changes={
            ROLE_CREATOR: _bonus_changes(game_session, role=ROLE_CREATOR),
            ROLE_PARTNER: _bonus_changes(game_session, role=ROLE_PARTNER),
        },
        creator_preferences=_read_preferences(game_session, role=ROLE_CREATOR),
        partner_preferences=(
            _read_preferences(game_session, role=ROLE_PARTNER)
            if game_session.partner_preferences is not None
            else None
        ),
        pending_partner_challenge=_build_pending_partner_challenge(game_session),
        version=int(game_session.version or 0),
        created_at=_ensure_aware(game_session.created_at),
        updated_at=_ensure_aware(game_session.updated_at),
        started_at=_ensure_aware(game_session.started_at),
        completed_at=_ensure_aware(game_session.completed_at),
    )


def _current_challenge_or_raise(
    challenges: list[SessionChallenge],
    *,
    index: int,
) -> SessionChallenge:
    if index < 0 or index >= len(challenges):
        raise ChallengeNotFoundError
    return challenges[index]
