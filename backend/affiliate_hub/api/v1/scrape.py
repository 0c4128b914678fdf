"""Operator endpoints for triggering and polling directory scrapes."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from affiliate_hub.dependencies.auth import require_admin
from affiliate_hub.models.base import get_db
from affiliate_hub.models.scrape_job import ScrapeJob, JOB_ERROR
from affiliate_hub.models.user import User
from affiliate_hub.schemas.scrape_job import (
    ScrapeJobRead,
    ScrapeTriggerRequest,
    ScrapeTriggerResponse,
    ScrapeJobResponse,
    ScrapeJobList,
)
from affiliate_hub.services.scrape_service import should_run_inline
from affiliate_hub.tasks.scrape_tasks import scrape_directory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/scrape", tags=["admin"])

RECENT_JOBS = 10


@router.post("", response_model=ScrapeTriggerResponse)
async def trigger_scrape(
    body: ScrapeTriggerRequest | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    """Start a scrape job.

    Small capped scrapes run to completion before responding; anything
    larger is queued and the caller polls with the returned ``logId``.
    """
    body = body or ScrapeTriggerRequest()

    # Persist the job before any network activity so a crash is still visible
    job = ScrapeJob.start(body.software)
    db.add(job)
    await db.commit()
    logger.info(f"[scrape {job.id}] Created by {user.email} (software={job.software}, limit={body.limit})")

    if should_run_inline(body.limit):
        await run_in_threadpool(scrape_directory, str(job.id), body.software, body.limit)
        await db.refresh(job)
        return ScrapeTriggerResponse(
            log_id=job.id,
            status=job.status,
            programs_found=job.programs_found,
            message="Scraping completed",
        )

    try:
        scrape_directory.delay(str(job.id), body.software, body.limit)
    except Exception as e:
        job.transition(JOB_ERROR, error=f"Could not queue scrape: {e}")
        await db.commit()
        raise

    return ScrapeTriggerResponse(
        log_id=job.id,
        status=job.status,
        message="Scraping started in background",
    )


@router.get("", response_model=ScrapeJobResponse | ScrapeJobList)
async def scrape_status(
    log_id: UUID | None = Query(None, alias="logId", description="Single job to poll"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    """Poll one job, or list the most recent jobs."""
    if log_id:
        job = await db.get(ScrapeJob, log_id)
        if not job:
            raise HTTPException(status_code=404, detail="Scrape job not found")
        return ScrapeJobResponse(log=ScrapeJobRead.model_validate(job))

    result = await db.execute(
        select(ScrapeJob).order_by(ScrapeJob.started_at.desc()).limit(RECENT_JOBS)
    )
    return ScrapeJobList(logs=[ScrapeJobRead.model_validate(job) for job in result.scalars().all()])
