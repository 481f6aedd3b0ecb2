from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import select

from app.core.config import get_settings
from app.db.models.game_sessions import GameSession
from app.db.session import SessionLocal
from app.workers.celery_app import SESSION_MAINTENANCE_QUEUE, celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

Check = Callable[[], Awaitable[dict[str, Any]]]


def _failed(error: str) -> dict[str, str]:
    # Driver messages can carry DSNs, so only a stable code leaves the process.
    return {"status": "failed", "error": error}


async def _check_database() -> dict[str, Any]:
    """Reads from the sessions table, so a missing migration reports as unavailable."""
    try:
        async with SessionLocal() as session:
            await session.execute(select(GameSession.code).limit(1))
    except Exception:
        logger.exception("health_check_failed", dependency="database")
        return _failed("database_unavailable")
    return {"status": "ok"}


async def _check_redis() -> dict[str, Any]:
    redis_client: Redis | None = None
    try:
        redis_client = Redis.from_url(get_settings().redis_url)
        if await redis_client.ping() is not True:
            return _failed("redis_unexpected_ping_response")
    except Exception:
        logger.exception("health_check_failed", dependency="redis")
        return _failed("redis_unavailable")
    finally:
        if redis_client is not None:
            await redis_client.aclose()
    return {"status": "ok"}


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        if inspector is None:
            return _failed("celery_inspector_unavailable")
        queues_by_worker = inspector.active_queues() or {}
    except Exception:
        logger.exception("health_check_failed", dependency="celery")
        return _failed("celery_unavailable")

    sweep_workers = [
        worker
        for worker, queues in queues_by_worker.items()
        if any(queue.get("name") == SESSION_MAINTENANCE_QUEUE for queue in queues or [])
    ]
    if not sweep_workers:
        return _failed("celery_no_session_workers")
    return {"status": "ok", "workers": len(sweep_workers)}


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


async def _run_checks(checks: dict[str, Check]) -> dict[str, dict[str, Any]]:
    results = await asyncio.gather(*(check() for check in checks.values()))
    return dict(zip(checks, results))


def _readiness_checks() -> dict[str, Check]:
    # Looked up per request so probes can be swapped out in tests.
    return {"database": _check_database, "redis": _check_redis}


def _health_checks() -> dict[str, Check]:
    return {**_readiness_checks(), "celery": _check_celery_worker}


def _report(checks: dict[str, dict[str, Any]], *, ok_label: str, failed_label: str) -> JSONResponse:
    is_ok = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_label if is_ok else failed_label, "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    return _report(await _run_checks(_health_checks()), ok_label="ok", failed_label="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    # Workers only run sweeps; a missing worker must not take the API out of rotation.
    checks = await _run_checks(_readiness_checks())
    return _report(checks, ok_label="ready", failed_label="not_ready")
