from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.game.challenges.types import GENDERS, PlayerPreferences
from app.game.sessions.constants import (
    SESSION_STATUS_ABANDONED,
    SESSION_STATUS_ACTIVE,
    SESSION_STATUS_COMPLETED,
)
from app.game.sessions.errors import (
    CannotJoinOwnSessionError,
    InvalidGenderError,
    SessionAbandonedError,
    SessionAlreadyStartedError,
    SessionCompletedError,
    SessionExpiredError,
    SessionFullError,
)
from app.game.sessions.types import SessionMutationResult

from .internal import (
    _build_session_snapshot,
    _is_join_window_expired,
    _load_session_or_raise,
    _touch,
)

logger = structlog.get_logger(__name__)


async def join_session(
    session: AsyncSession,
    *,
    code: str,
    partner_user_id: str,
    partner_gender: str,
    partner_preferences: PlayerPreferences | None = None,
    now_utc: datetime,
    join_ttl_hours: int,
) -> SessionMutationResult:
    if partner_gender not in GENDERS:
        raise InvalidGenderError
    game_session = await _load_session_or_raise(session, code=code)

    if game_session.creator_user_id == partner_user_id:
        raise CannotJoinOwnSessionError
    if game_session.status == SESSION_STATUS_ACTIVE:
        raise SessionAlreadyStartedError
    if game_session.status == SESSION_STATUS_ABANDONED:
        raise SessionAbandonedError
    if game_session.status == SESSION_STATUS_COMPLETED:
        raise SessionCompletedError
    if game_session.partner_user_id is not None:
        raise SessionFullError

    if _is_join_window_expired(game_session, now_utc=now_utc, join_ttl_hours=join_ttl_hours):
        game_session.status = SESSION_STATUS_ABANDONED
        _touch(game_session, now_utc=now_utc)
        await session.flush()
        logger.info(
            "session_join_expired",
            session_code=game_session.code,
            partner_user_id=partner_user_id,
        )
        raise SessionExpiredError(snapshot=_build_session_snapshot(game_session))

    game_session.partner_user_id = partner_user_id
    game_session.partner_gender = partner_gender
    game_session.partner_preferences = (partner_preferences or PlayerPreferences()).to_payload()
    game_session.status = SESSION_STATUS_ACTIVE
    game_session.started_at = now_utc
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    logger.info(
        "session_joined",
        session_code=game_session.code,
        partner_user_id=partner_user_id,
    )
    return SessionMutationResult(snapshot=_build_session_snapshot(game_session))
