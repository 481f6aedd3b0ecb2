from __future__ import annotations

from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.game.sessions.constants import (
    ROLE_CREATOR,
    SESSION_DELETABLE_STATUSES,
    SESSION_FINISHED_STATUSES,
    SESSION_STATUS_ABANDONED,
    SESSION_STATUS_COMPLETED,
)
from app.game.sessions.errors import (
    OnlyCreatorCanDeleteError,
    SessionAbandonedError,
    SessionCompletedError,
    SessionDeleteForbiddenError,
)
from app.game.sessions.types import SessionDeleteResult, SessionMutationResult

from .internal import (
    _build_session_snapshot,
    _clear_pending_partner_challenge,
    _load_session_or_raise,
    _require_active,
    _require_member_role,
    _touch,
)

logger = structlog.get_logger(__name__)


def _reject_if_finished(status: str) -> None:
    if status == SESSION_STATUS_COMPLETED:
        raise SessionCompletedError
    if status == SESSION_STATUS_ABANDONED:
        raise SessionAbandonedError


async def abandon_session(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    now_utc: datetime,
) -> SessionMutationResult:
    game_session = await _load_session_or_raise(session, code=code)
    role = _require_member_role(game_session, user_id=user_id)
    _reject_if_finished(game_session.status)

    game_session.status = SESSION_STATUS_ABANDONED
    game_session.completed_at = now_utc
    _clear_pending_partner_challenge(game_session)
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    logger.info("session_abandoned", session_code=game_session.code, role=role)
    return SessionMutationResult(snapshot=_build_session_snapshot(game_session))


async def end_session(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    now_utc: datetime,
) -> SessionMutationResult:
    game_session = await _load_session_or_raise(session, code=code)
    role = _require_member_role(game_session, user_id=user_id)
    _require_active(game_session)

    game_session.status = SESSION_STATUS_COMPLETED
    game_session.completed_at = now_utc
    _clear_pending_partner_challenge(game_session)
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    logger.info(
        "session_ended",
        session_code=game_session.code,
        role=role,
        current_challenge_index=game_session.current_challenge_index,
    )
    return SessionMutationResult(snapshot=_build_session_snapshot(game_session))


async def delete_session(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
) -> SessionDeleteResult:
    game_session = await _load_session_or_raise(session, code=code)
    role = _require_member_role(game_session, user_id=user_id)
    if role != ROLE_CREATOR:
        raise OnlyCreatorCanDeleteError
    if game_session.status not in SESSION_DELETABLE_STATUSES:
        raise SessionDeleteForbiddenError

    deleted_code = game_session.code
    await GameSessionsRepo.delete(session, game_session=game_session)
    logger.info("session_deleted", session_code=deleted_code)
    return SessionDeleteResult(code=deleted_code)


async def expire_stale_waiting_sessions(
    session: AsyncSession,
    *,
    now_utc: datetime,
    join_ttl_hours: int,
    batch_size: int,
) -> list[str]:
    """Marks unjoined sessions past the join window as abandoned.

    The join-time check stays authoritative; this only keeps listings tidy.
    """
    created_before = now_utc - timedelta(hours=max(1, int(join_ttl_hours)))
    stale_sessions = await GameSessionsRepo.list_waiting_created_before(
        session,
        created_before_utc=created_before,
        limit=batch_size,
    )
    expired_codes: list[str] = []
    for game_session in stale_sessions:
        if game_session.status in SESSION_FINISHED_STATUSES:
            continue
        game_session.status = SESSION_STATUS_ABANDONED
        _touch(game_session, now_utc=now_utc)
        expired_codes.append(game_session.code)
    if expired_codes:
        await session.flush()
    return expired_codes
