from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from app.core.config import get_settings


def build_engine(database_url: str | None = None) -> AsyncEngine:
    return create_async_engine(
        database_url or get_settings().database_url,
        pool_pre_ping=True,
    )


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=bind, expire_on_commit=False, autoflush=False)


engine = build_engine()
SessionLocal = build_sessionmaker(engine)


async def dispose_engine() -> None:
    await engine.dispose()
