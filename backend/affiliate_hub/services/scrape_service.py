"""Directory scrape orchestration.

``execute_scrape`` is the single unit of work for a scrape job. The
trigger endpoint either awaits it in a worker thread (small, bounded
scrapes) or hands it to Celery, so both paths run exactly this code.
"""

import logging
import traceback
import uuid
from dataclasses import asdict
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from affiliate_hub.config import get_settings
from affiliate_hub.exceptions import InvalidJobTransition
from affiliate_hub.models.scrape_job import ScrapeJob, JOB_ERROR, JOB_SUCCESS
from affiliate_hub.models.scraped_program import ScrapedProgram
from affiliate_hub.scrapers.directory import DirectoryScraper, ProgramCandidate

logger = logging.getLogger(__name__)
settings = get_settings()


def should_run_inline(limit: int | None) -> bool:
    """Small capped scrapes finish inside the request; everything else is detached."""
    return limit is not None and limit < settings.sync_scrape_threshold


def describe_failure(exc: BaseException) -> str:
    """Exception message plus the frame that raised it."""
    message = f"{type(exc).__name__}: {exc}"
    frames = traceback.extract_tb(exc.__traceback__)
    if frames:
        frame = frames[-1]
        message += f" (at {frame.filename}:{frame.lineno} in {frame.name})"
    return message


def upsert_program(db: Session, candidate: ProgramCandidate) -> bool:
    """Insert or refresh a scraped program by slug. Returns True when the row is new.

    Template mapping, resolved join URL and status are left alone so that
    re-scraping never clobbers curation done after the first pass.
    """
    now = datetime.now(timezone.utc)
    fields = asdict(candidate)

    existing = db.query(ScrapedProgram).filter(ScrapedProgram.slug == candidate.slug).first()
    if existing:
        for key, value in fields.items():
            setattr(existing, key, value)
        existing.last_checked_at = now
        return False

    db.add(ScrapedProgram(id=uuid.uuid4(), scraped_at=now, last_checked_at=now, **fields))
    return True


def save_program(db: Session, candidate: ProgramCandidate) -> bool:
    """Upsert and commit one candidate.

    Another job may insert the same new slug between our lookup and commit;
    that insert wins and ours is replayed as an update.
    """
    try:
        created = upsert_program(db, candidate)
        db.commit()
    except IntegrityError:
        db.rollback()
        created = upsert_program(db, candidate)
        db.commit()
    return created


def get_job(db: Session, job_id) -> ScrapeJob | None:
    return db.get(ScrapeJob, uuid.UUID(str(job_id)))


def execute_scrape(
    db: Session,
    job_id,
    software: str | None = None,
    limit: int | None = None,
    scraper: DirectoryScraper | None = None,
) -> ScrapeJob | None:
    """Run one scrape job to a terminal state.

    Browser or listing failures end the job in ``error``; individual rows
    that fail to save are logged and skipped.
    """
    job = get_job(db, job_id)
    if job is None:
        logger.error(f"Scrape job {job_id} not found")
        return None

    tag = f"[scrape {job.id}]"
    if not job.is_running:
        logger.warning(f"{tag} Job already {job.status}, not running it again")
        return job

    scraper = scraper or DirectoryScraper()

    try:
        job.current_progress = "Fetching page..."
        db.commit()

        raw_rows = scraper.scrape(software)

        job.current_progress = "Parsing programs..."
        db.commit()

        candidates = []
        for raw in raw_rows:
            try:
                candidate = scraper.normalize(raw)
            except Exception as e:
                logger.warning(f"{tag} Failed to parse listing row: {e}")
                continue
            if candidate is not None:
                candidates.append(candidate)
        dropped = len(raw_rows) - len(candidates)
        if dropped:
            logger.info(f"{tag} Dropped {dropped} malformed listing rows")

        if limit:
            candidates = candidates[:limit]

        total = len(candidates)
        saved = 0
        every = settings.progress_checkpoint_every
        for index, candidate in enumerate(candidates, start=1):
            try:
                save_program(db, candidate)
            except OperationalError:
                raise
            except Exception as e:
                db.rollback()
                logger.warning(f"{tag} Failed to save {candidate.slug}: {e}")
                continue

            saved += 1
            if saved % every == 0 or index == total:
                job.record_progress(saved, total)
                db.commit()

        job.transition(JOB_SUCCESS, programs_found=saved)
        db.commit()
        logger.info(f"{tag} Scrape complete: {saved}/{total} programs saved")

    except Exception as e:
        logger.error(f"{tag} Scrape failed: {e}")
        db.rollback()
        job = get_job(db, job_id)
        try:
            job.transition(JOB_ERROR, error=describe_failure(e))
            db.commit()
        except InvalidJobTransition as transition_error:
            logger.warning(f"{tag} Could not record failure: {transition_error}")

    return job
