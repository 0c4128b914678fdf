"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from affiliate_hub.config import get_settings

settings = get_settings()

celery_app = Celery(
    "affiliate_hub",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "affiliate_hub.tasks.scrape_tasks",
        "affiliate_hub.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=1800,
    task_soft_time_limit=1740,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "sweep-stale-scrape-jobs": {
        "task": "affiliate_hub.tasks.maintenance_tasks.sweep_stale_scrape_jobs",
        "schedule": crontab(minute="*/15"),
    },
    "resolve-pending-redirects": {
        "task": "affiliate_hub.tasks.scrape_tasks.resolve_pending_redirects",
        "schedule": crontab(minute=0, hour="*/6"),
    },
}
