from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.game_sessions import GameSession


class GameSessionsRepo:
    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> GameSession | None:
        return await session.get(GameSession, code)

    @staticmethod
    async def code_exists(session: AsyncSession, code: str) -> bool:
        stmt = select(func.count(GameSession.code)).where(GameSession.code == code)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0) > 0

    @staticmethod
    async def create(session: AsyncSession, *, game_session: GameSession) -> GameSession:
        session.add(game_session)
        await session.flush()
        return game_session

    @staticmethod
    async def delete(session: AsyncSession, *, game_session: GameSession) -> None:
        await session.delete(game_session)
        await session.flush()

    @staticmethod
    async def list_for_user_by_statuses(
        session: AsyncSession,
        *,
        user_id: str,
        statuses: Sequence[str],
        limit: int,
        newest_finished_first: bool = False,
    ) -> list[GameSession]:
        resolved_limit = max(1, int(limit))
        ordering = (
            (GameSession.completed_at.desc().nulls_last(), GameSession.code.asc())
            if newest_finished_first
            else (GameSession.created_at.desc(), GameSession.code.asc())
        )
        stmt = (
            select(GameSession)
            .where(
                or_(
                    GameSession.creator_user_id == user_id,
                    GameSession.partner_user_id == user_id,
                ),
                GameSession.status.in_(tuple(statuses)),
            )
            .order_by(*ordering)
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_waiting_created_before(
        session: AsyncSession,
        *,
        created_before_utc: datetime,
        limit: int,
    ) -> list[GameSession]:
        resolved_limit = max(1, int(limit))
        stmt = (
            select(GameSession)
            .where(
                GameSession.status == "waiting",
                GameSession.created_at < created_before_utc,
            )
            .order_by(GameSession.created_at.asc())
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
