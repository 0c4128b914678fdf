"""Maintenance tasks — scrape job hygiene."""

import logging
from datetime import datetime, timezone, timedelta

from affiliate_hub.config import get_settings
from affiliate_hub.tasks.celery_app import celery_app
from affiliate_hub.models.base import SyncSessionLocal
from affiliate_hub.models.scrape_job import ScrapeJob, JOB_RUNNING, JOB_ERROR

logger = logging.getLogger(__name__)
settings = get_settings()


def sweep_stale_jobs(db, max_age_minutes: int) -> int:
    """Fail running jobs whose worker never reported back."""
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=max_age_minutes)
    stale = db.query(ScrapeJob).filter(
        ScrapeJob.status == JOB_RUNNING,
        ScrapeJob.started_at < cutoff,
    ).all()

    for job in stale:
        job.transition(
            JOB_ERROR,
            error=f"Abandoned: no completion recorded within {max_age_minutes} minutes",
        )
        logger.warning(f"[scrape {job.id}] Marked stale running job as error")
    db.commit()
    return len(stale)


@celery_app.task(name="affiliate_hub.tasks.maintenance_tasks.sweep_stale_scrape_jobs")
def sweep_stale_scrape_jobs():
    """Close out scrape jobs left running by a worker that died mid-execution."""
    db = SyncSessionLocal()
    try:
        swept = sweep_stale_jobs(db, settings.stale_job_minutes)
        logger.info(f"Swept {swept} stale scrape jobs")
        return {"swept": swept}
    finally:
        db.close()
