"""Directory scrape and join-link resolution tasks."""

import logging

from affiliate_hub.tasks.celery_app import celery_app
from affiliate_hub.models.base import SyncSessionLocal
from affiliate_hub.models.scraped_program import ScrapedProgram
from affiliate_hub.scrapers.directory import DirectoryScraper
from affiliate_hub.services.redirect_resolver import resolve_redirect, clean_url
from affiliate_hub.services.scrape_service import execute_scrape

logger = logging.getLogger(__name__)


@celery_app.task(name="affiliate_hub.tasks.scrape_tasks.scrape_directory")
def scrape_directory(job_id: str, software: str | None = None, limit: int | None = None):
    """Run a scrape job. Called inline for small scrapes, queued for large ones."""
    db = SyncSessionLocal()
    try:
        job = execute_scrape(db, job_id, software=software, limit=limit, scraper=DirectoryScraper())
        if job is None:
            return None
        return {"job_id": str(job.id), "status": job.status, "programs_found": job.programs_found}
    finally:
        db.close()


@celery_app.task(name="affiliate_hub.tasks.scrape_tasks.resolve_pending_redirects")
def resolve_pending_redirects(limit: int | None = None):
    """Resolve and store the final join URL for programs that do not have one yet."""
    db = SyncSessionLocal()
    try:
        query = db.query(ScrapedProgram).filter(
            ScrapedProgram.join_url.isnot(None),
            ScrapedProgram.final_join_url.is_(None),
        ).order_by(ScrapedProgram.name.asc())
        if limit:
            query = query.limit(limit)
        programs = query.all()

        resolved = 0
        failed = 0
        for program in programs:
            try:
                program.final_join_url = clean_url(resolve_redirect(program.join_url))
                db.commit()
                resolved += 1
            except Exception as e:
                db.rollback()
                failed += 1
                logger.warning(f"Failed to resolve join URL for {program.slug}: {e}")

        logger.info(f"Resolved {resolved} join URLs ({failed} failed)")
        return {"resolved": resolved, "failed": failed}
    finally:
        db.close()
