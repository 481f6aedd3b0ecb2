from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.game.sessions.constants import (
    SESSION_FINISHED_STATUSES,
    SESSION_HISTORY_DEFAULT_LIMIT,
    SESSION_LIST_MAX_LIMIT,
    SESSION_LIVE_STATUSES,
)
from app.game.sessions.types import SessionSnapshot

from .internal import _build_session_snapshot, _load_session_or_raise, _require_member_role


def _resolve_limit(limit: int) -> int:
    return max(1, min(SESSION_LIST_MAX_LIMIT, int(limit)))


async def get_session(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
) -> SessionSnapshot:
    game_session = await _load_session_or_raise(session, code=code)
    _require_member_role(game_session, user_id=user_id)
    return _build_session_snapshot(game_session)


async def get_active_sessions(
    session: AsyncSession,
    *,
    user_id: str,
    limit: int = SESSION_LIST_MAX_LIMIT,
) -> list[SessionSnapshot]:
    rows = await GameSessionsRepo.list_for_user_by_statuses(
        session,
        user_id=user_id,
        statuses=tuple(sorted(SESSION_LIVE_STATUSES)),
        limit=_resolve_limit(limit),
    )
    return [_build_session_snapshot(row) for row in rows]


async def get_session_history(
    session: AsyncSession,
    *,
    user_id: str,
    limit: int = SESSION_HISTORY_DEFAULT_LIMIT,
) -> list[SessionSnapshot]:
    rows = await GameSessionsRepo.list_for_user_by_statuses(
        session,
        user_id=user_id,
        statuses=tuple(sorted(SESSION_FINISHED_STATUSES)),
        limit=_resolve_limit(limit),
        newest_finished_first=True,
    )
    return [_build_session_snapshot(row) for row in rows]
