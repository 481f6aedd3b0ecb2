from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from app.db.models import Base
from app.db.session import build_sessionmaker
from app.game.sessions.observers import SessionObserverHub
from app.game.sessions.service_facade import GameSessionFacade

from tests.integration.game_session_fixtures import FrozenClock

UTC = timezone.utc


@pytest.fixture
async def session_factory(tmp_path):  # noqa: ANN001
    # A file database gives every unit of work its own connection.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield build_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 2, 25, 18, 0, tzinfo=UTC))


@pytest.fixture
def facade(session_factory, clock: FrozenClock) -> GameSessionFacade:  # noqa: ANN001
    return GameSessionFacade(
        session_factory,
        observers=SessionObserverHub(),
        max_write_attempts=3,
        join_ttl_hours=24,
        clock=clock,
    )
