import os
from celery import Celery
from celery.schedules import crontab

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

celery_app = Celery(
    "mingree",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["mingree.tasks.maintenance_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

celery_app.conf.beat_schedule = {
    "process-escrow-refunds": {
        "task": "process_escrow_refunds",
        "schedule": crontab(minute=0),  # hourly
    },
    "expire-reservations": {
        "task": "expire_reservations",
        "schedule": crontab(minute="*/15"),
    },
    "downgrade-expired-trials": {
        "task": "downgrade_expired_trials",
        "schedule": crontab(minute=30),  # hourly
    },
}
