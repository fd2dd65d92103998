from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging
from celery.signals import worker_process_init

from app.core.config import settings

celery_app = Celery(
    "visibility_tracker",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)

# Celery Beat schedule: the sweep runs hourly and itself decides which
# businesses are due (next_check_date + subscription cadence).
celery_app.conf.beat_schedule = {
    "run-scheduled-tracking": {
        "task": "run_scheduled_tracking",
        "schedule": crontab(minute=0),  # top of every hour
    },
}

# Auto-discover tasks from tasks modules
celery_app.autodiscover_tasks(["app.tasks"])

# Explicit include as fallback for autodiscover (needed for CLI worker startup)
celery_app.conf.include = [
    "app.tasks.tracking_tasks",
]


@celery_setup_logging.connect
def _configure_worker_logging(**kwargs):
    from app.core.logging import setup_logging

    setup_logging()


@worker_process_init.connect
def _init_worker_sentry(**kwargs):
    from app.core.sentry import init_sentry

    init_sentry("worker")
