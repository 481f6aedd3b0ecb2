from celery import Celery

from app.core.config import get_settings

SESSION_MAINTENANCE_QUEUE = "q_session_maintenance"

settings = get_settings()

celery_app = Celery(
    "duo_challenge",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.workers.tasks.session_expiry"],
)

celery_app.conf.update(
    task_default_queue=SESSION_MAINTENANCE_QUEUE,
    task_routes={"app.workers.tasks.session_expiry.*": {"queue": SESSION_MAINTENANCE_QUEUE}},
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    # A sweep outliving its own interval would overlap with the next beat run.
    task_time_limit=max(60, int(settings.session_sweep_interval_seconds)),
    result_expires=3600,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)


@celery_app.task(name="app.workers.celery_app.ping")
def ping() -> str:
    return "pong"
