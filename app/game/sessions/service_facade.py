from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import get_settings
from app.core.session_codes import normalize_session_code
from app.game.challenges.selection import select_challenges
from app.game.challenges.types import (
    PlayerPreferences,
    SelectionConfig,
    SessionChallenge,
)
from app.game.sessions.constants import (
    PARTNER_CHALLENGE_DEFAULT_LEVEL,
    PARTNER_CHALLENGE_DEFAULT_MEDIA_TYPE,
    SESSION_FINISHED_STATUSES,
    SESSION_HISTORY_DEFAULT_LIMIT,
    SESSION_LIST_MAX_LIMIT,
)
from app.game.sessions.errors import (
    ConcurrentUpdateConflictError,
    GameSessionError,
    StoreUnavailableError,
)
from app.game.sessions.observers import SessionObserverHub
from app.game.sessions.service import GameSessionService
from app.game.sessions.types import OperationResult, SessionDeleteResult, SessionSnapshot

logger = structlog.get_logger(__name__)

T = TypeVar("T")
UnitOfWork = Callable[[AsyncSession], Awaitable[T]]
MediaCleanup = Callable[[str], Awaitable[None]]

_OPPOSITE_GENDER = {"male": "female", "female": "male"}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _error_result(exc: GameSessionError) -> OperationResult:
    return OperationResult.failure(code=exc.code, kind=exc.kind, error=exc.message)


def _published_state(result: Any) -> tuple[str, SessionSnapshot | None] | None:
    if isinstance(result, SessionDeleteResult):
        return result.code, None
    snapshot = getattr(result, "snapshot", None)
    if isinstance(snapshot, SessionSnapshot):
        return snapshot.code, snapshot
    return None


class GameSessionFacade:
    """Request/response surface over the session services.

    Every call runs as one read-compute-write unit in its own database session.
    Failures come back as an ``OperationResult``; nothing raises past here. A
    version conflict re-runs the whole unit from a fresh read.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        observers: SessionObserverHub | None = None,
        media_cleanup: MediaCleanup | None = None,
        max_write_attempts: int | None = None,
        join_ttl_hours: int | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        settings = get_settings()
        self._session_factory = session_factory
        self.observers = observers or SessionObserverHub()
        self._media_cleanup = media_cleanup
        self._max_write_attempts = max(
            1,
            int(max_write_attempts or settings.session_write_max_attempts),
        )
        self._join_ttl_hours = max(1, int(join_ttl_hours or settings.session_join_ttl_hours))
        self._clock = clock

    async def _run_unit(self, unit: UnitOfWork[T]) -> T:
        async with self._session_factory() as session:
            try:
                result = await unit(session)
            except GameSessionError as exc:
                if exc.keeps_changes:
                    await session.commit()
                else:
                    await session.rollback()
                raise
            await session.commit()
            return result

    async def _execute(
        self,
        operation: str,
        unit: UnitOfWork[Any],
        *,
        code: str | None = None,
        publish: bool = True,
    ) -> OperationResult:
        for attempt in range(1, self._max_write_attempts + 1):
            try:
                result = await self._run_unit(unit)
            except StaleDataError:
                logger.warning(
                    "session_write_conflict",
                    operation=operation,
                    session_code=code,
                    attempt=attempt,
                )
                continue
            except GameSessionError as exc:
                logger.info(
                    "session_operation_rejected",
                    operation=operation,
                    session_code=code,
                    error_code=exc.code.value,
                    error_kind=exc.kind.value,
                )
                if exc.keeps_changes and exc.snapshot is not None:
                    await self.observers.publish(exc.snapshot.code, exc.snapshot)
                return _error_result(exc)
            except SQLAlchemyError:
                logger.exception(
                    "session_store_unavailable",
                    operation=operation,
                    session_code=code,
                )
                return _error_result(StoreUnavailableError())
            except OSError:
                # Driver-level connection failures reach here unwrapped.
                logger.exception(
                    "session_store_unavailable",
                    operation=operation,
                    session_code=code,
                )
                return _error_result(StoreUnavailableError())
            except Exception:
                logger.exception(
                    "session_operation_failed",
                    operation=operation,
                    session_code=code,
                )
                return _error_result(GameSessionError())

            if publish:
                await self._after_commit(operation, result)
            return OperationResult.ok(result)

        logger.warning(
            "session_write_conflict_exhausted",
            operation=operation,
            session_code=code,
            attempts=self._max_write_attempts,
        )
        return _error_result(ConcurrentUpdateConflictError())

    async def _after_commit(self, operation: str, result: Any) -> None:
        state = _published_state(result)
        if state is None:
            return
        code, snapshot = state
        await self.observers.publish(code, snapshot)
        if (
            snapshot is not None
            and snapshot.status in SESSION_FINISHED_STATUSES
            and self._media_cleanup is not None
        ):
            try:
                await self._media_cleanup(code)
            except Exception:
                logger.exception(
                    "session_media_cleanup_failed",
                    operation=operation,
                    session_code=code,
                )

    async def create_session(
        self,
        *,
        creator_user_id: str,
        creator_gender: str,
        challenge_count: int,
        start_intensity: int,
        is_premium: bool,
        creator_preferences: PlayerPreferences | None = None,
        partner_gender: str | None = None,
        partner_preferences: PlayerPreferences | None = None,
        challenges: list[SessionChallenge] | None = None,
        selection_seed: str | None = None,
    ) -> OperationResult:
        resolved_preferences = creator_preferences or PlayerPreferences()

        async def _unit(session: AsyncSession):
            GameSessionService.validate_session_settings(
                creator_gender=creator_gender,
                challenge_count=challenge_count,
                start_intensity=start_intensity,
                is_premium=is_premium,
                preferences=resolved_preferences,
            )
            selected = challenges
            warnings: list[str] = []
            stats = None
            if selected is None:
                selection = select_challenges(
                    SelectionConfig(
                        creator_gender=creator_gender,
                        partner_gender=partner_gender
                        or _OPPOSITE_GENDER.get(creator_gender, creator_gender),
                        challenge_count=challenge_count,
                        start_intensity=start_intensity,
                        is_premium=is_premium,
                        creator_preferences=resolved_preferences,
                        partner_preferences=partner_preferences or PlayerPreferences(),
                        selection_seed=selection_seed,
                    )
                )
                selected = selection.challenges
                warnings = selection.warnings
                stats = selection.stats
            return await GameSessionService.create_session(
                session,
                creator_user_id=creator_user_id,
                creator_gender=creator_gender,
                challenge_count=challenge_count,
                start_intensity=start_intensity,
                is_premium=is_premium,
                challenges=selected,
                creator_preferences=resolved_preferences,
                selection_warnings=warnings,
                selection_stats=stats,
                now_utc=self._clock(),
            )

        return await self._execute("create_session", _unit)

    async def join_session(
        self,
        *,
        code: str,
        partner_user_id: str,
        partner_gender: str,
        partner_preferences: PlayerPreferences | None = None,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.join_session(
                session,
                code=code,
                partner_user_id=partner_user_id,
                partner_gender=partner_gender,
                partner_preferences=partner_preferences,
                now_utc=self._clock(),
                join_ttl_hours=self._join_ttl_hours,
            )

        return await self._execute("join_session", _unit, code=code)

    async def get_session(self, *, code: str, user_id: str) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.get_session(session, code=code, user_id=user_id)

        return await self._execute("get_session", _unit, code=code, publish=False)

    async def get_active_sessions(
        self,
        *,
        user_id: str,
        limit: int = SESSION_LIST_MAX_LIMIT,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.get_active_sessions(
                session,
                user_id=user_id,
                limit=limit,
            )

        return await self._execute("get_active_sessions", _unit, publish=False)

    async def get_session_history(
        self,
        *,
        user_id: str,
        limit: int = SESSION_HISTORY_DEFAULT_LIMIT,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.get_session_history(
                session,
                user_id=user_id,
                limit=limit,
            )

        return await self._execute("get_session_history", _unit, publish=False)

    async def abandon_session(self, *, code: str, user_id: str) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.abandon_session(
                session,
                code=code,
                user_id=user_id,
                now_utc=self._clock(),
            )

        return await self._execute("abandon_session", _unit, code=code)

    async def end_session(self, *, code: str, user_id: str) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.end_session(
                session,
                code=code,
                user_id=user_id,
                now_utc=self._clock(),
            )

        return await self._execute("end_session", _unit, code=code)

    async def delete_session(self, *, code: str, user_id: str) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.delete_session(session, code=code, user_id=user_id)

        return await self._execute("delete_session", _unit, code=code)

    async def complete_challenge(
        self,
        *,
        code: str,
        user_id: str,
        challenge_index: int | None = None,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.complete_challenge(
                session,
                code=code,
                user_id=user_id,
                now_utc=self._clock(),
                challenge_index=challenge_index,
            )

        return await self._execute("complete_challenge", _unit, code=code)

    async def get_change_quota(
        self,
        *,
        code: str,
        user_id: str,
        is_premium: bool,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.get_change_quota(
                session,
                code=code,
                user_id=user_id,
                is_premium=is_premium,
            )

        return await self._execute("get_change_quota", _unit, code=code, publish=False)

    async def change_challenge(
        self,
        *,
        code: str,
        user_id: str,
        is_premium: bool,
        selection_seed: str | None = None,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.change_challenge(
                session,
                code=code,
                user_id=user_id,
                is_premium=is_premium,
                selection_seed=selection_seed,
            )

        return await self._execute("change_challenge", _unit, code=code, publish=False)

    async def swap_challenge(
        self,
        *,
        code: str,
        user_id: str,
        is_premium: bool,
        new_challenge: SessionChallenge,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.swap_challenge(
                session,
                code=code,
                user_id=user_id,
                is_premium=is_premium,
                new_challenge=new_challenge,
                now_utc=self._clock(),
            )

        return await self._execute("swap_challenge", _unit, code=code)

    async def add_bonus_change(
        self,
        *,
        code: str,
        user_id: str,
        reward_earned: bool = True,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.add_bonus_change(
                session,
                code=code,
                user_id=user_id,
                reward_earned=reward_earned,
                now_utc=self._clock(),
            )

        return await self._execute("add_bonus_change", _unit, code=code)

    async def request_partner_challenge(
        self,
        *,
        code: str,
        user_id: str,
        is_user_premium: bool,
        is_partner_premium: bool,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.request_partner_challenge(
                session,
                code=code,
                user_id=user_id,
                is_user_premium=is_user_premium,
                is_partner_premium=is_partner_premium,
                now_utc=self._clock(),
            )

        return await self._execute("request_partner_challenge", _unit, code=code)

    async def submit_partner_challenge(
        self,
        *,
        code: str,
        user_id: str,
        text: str,
        level: int = PARTNER_CHALLENGE_DEFAULT_LEVEL,
        media_type: str = PARTNER_CHALLENGE_DEFAULT_MEDIA_TYPE,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.submit_partner_challenge(
                session,
                code=code,
                user_id=user_id,
                text=text,
                level=level,
                media_type=media_type,
                now_utc=self._clock(),
            )

        return await self._execute("submit_partner_challenge", _unit, code=code)

    async def cancel_partner_challenge_request(
        self,
        *,
        code: str,
        user_id: str,
    ) -> OperationResult:
        async def _unit(session: AsyncSession):
            return await GameSessionService.cancel_partner_challenge_request(
                session,
                code=code,
                user_id=user_id,
                now_utc=self._clock(),
            )

        return await self._execute("cancel_partner_challenge_request", _unit, code=code)

    def subscribe(
        self,
        code: str,
        callback: Callable[[str, SessionSnapshot | None], Awaitable[None]],
    ) -> Callable[[], None]:
        return self.observers.subscribe(normalize_session_code(code), callback)
