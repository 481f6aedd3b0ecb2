from __future__ import annotations

from collections import defaultdict
from collections.abc import Awaitable, Callable

import structlog

from app.game.sessions.types import SessionSnapshot

logger = structlog.get_logger(__name__)

SessionObserver = Callable[[str, SessionSnapshot | None], Awaitable[None]]


class SessionObserverHub:
    """Fans committed session states out to per-code subscribers.

    A deleted session is published as ``None``. Subscribers are awaited one by
    one in subscription order, so a single writer's updates arrive in the order
    they were committed.
    """

    def __init__(self) -> None:
        self._observers: dict[str, list[SessionObserver]] = defaultdict(list)

    def subscribe(self, code: str, callback: SessionObserver) -> Callable[[], None]:
        self._observers[code].append(callback)

        def _unsubscribe() -> None:
            observers = self._observers.get(code)
            if not observers:
                return
            if callback in observers:
                observers.remove(callback)
            if not observers:
                self._observers.pop(code, None)

        return _unsubscribe

    def subscriber_count(self, code: str) -> int:
        return len(self._observers.get(code, ()))

    async def publish(self, code: str, snapshot: SessionSnapshot | None) -> None:
        for callback in list(self._observers.get(code, ())):
            try:
                await callback(code, snapshot)
            except Exception:
                logger.exception("session_observer_failed", session_code=code)
