from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import get_settings
from app.db.session import SessionLocal, dispose_engine
from app.game.sessions.service import GameSessionService
from app.workers.celery_app import SESSION_MAINTENANCE_QUEUE, celery_app

logger = structlog.get_logger(__name__)
settings = get_settings()

SWEEP_BATCH_SIZE = max(1, int(settings.session_sweep_batch_size))
SWEEP_INTERVAL_SECONDS = max(60, int(settings.session_sweep_interval_seconds))
JOIN_TTL_HOURS = max(1, int(settings.session_join_ttl_hours))


async def sweep_stale_waiting_sessions_async(
    *,
    batch_size: int = SWEEP_BATCH_SIZE,
) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    resolved_batch_size = max(1, int(batch_size))

    try:
        async with SessionLocal.begin() as session:
            expired_codes = await GameSessionService.expire_stale_waiting_sessions(
                session,
                now_utc=now_utc,
                join_ttl_hours=JOIN_TTL_HOURS,
                batch_size=resolved_batch_size,
            )
    except StaleDataError:
        # A partner joined (or the join check expired the row) mid-sweep; the next run retries.
        logger.warning("stale_sessions_sweep_conflict", batch_size=resolved_batch_size)
        return {"batch_size": resolved_batch_size, "expired_total": 0, "conflicts_total": 1}

    result = {
        "batch_size": resolved_batch_size,
        "expired_total": len(expired_codes),
        "conflicts_total": 0,
    }
    logger.info("stale_sessions_swept", **result)
    return result


async def _sweep_with_fresh_pool(batch_size: int) -> dict[str, int]:
    # Pooled connections are bound to the event loop that opened them.
    await dispose_engine()
    try:
        return await sweep_stale_waiting_sessions_async(batch_size=batch_size)
    finally:
        await dispose_engine()


@celery_app.task(name="app.workers.tasks.session_expiry.sweep_stale_waiting_sessions")
def sweep_stale_waiting_sessions(batch_size: int = SWEEP_BATCH_SIZE) -> dict[str, int]:
    return asyncio.run(_sweep_with_fresh_pool(batch_size))


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "stale-waiting-sessions-sweep": {
            "task": "app.workers.tasks.session_expiry.sweep_stale_waiting_sessions",
            "schedule": float(SWEEP_INTERVAL_SECONDS),
            "options": {"queue": SESSION_MAINTENANCE_QUEUE},
        },
    }
)
