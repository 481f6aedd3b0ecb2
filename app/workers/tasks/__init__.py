from app.workers.tasks.session_expiry import sweep_stale_waiting_sessions

__all__ = [
    "sweep_stale_waiting_sessions",
]
