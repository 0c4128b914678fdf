"""Operator endpoints for scraped directory programs."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from affiliate_hub.dependencies.auth import require_admin
from affiliate_hub.models.base import get_db
from affiliate_hub.models.scraped_program import ScrapedProgram
from affiliate_hub.models.user import User
from affiliate_hub.schemas.scraped_program import (
    ScrapedProgramRead,
    ScrapedProgramList,
    ScrapedProgramUpdate,
    ScrapedProgramUpdateResponse,
    ResolveRedirectRequest,
    ResolveRedirectResponse,
    DirectoryStats,
    DirectoryTotals,
    GroupCount,
    RecentProgram,
)
from affiliate_hub.services.redirect_resolver import resolve_redirect, clean_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/programs", tags=["admin"])


@router.get("", response_model=ScrapedProgramList)
async def list_programs(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    """All scraped programs by name."""
    result = await db.execute(select(ScrapedProgram).order_by(ScrapedProgram.name.asc()))
    return ScrapedProgramList(
        programs=[ScrapedProgramRead.model_validate(p) for p in result.scalars().all()]
    )


async def _count(db: AsyncSession, *conditions) -> int:
    query = select(func.count(ScrapedProgram.id))
    if conditions:
        query = query.where(*conditions)
    return (await db.execute(query)).scalar() or 0


async def _group_counts(db: AsyncSession, column, limit: int) -> list[GroupCount]:
    count = func.count(ScrapedProgram.id)
    result = await db.execute(
        select(column, count).group_by(column).order_by(count.desc()).limit(limit)
    )
    return [GroupCount(label=label, count=n) for label, n in result.all()]


@router.get("/stats", response_model=DirectoryStats)
async def program_stats(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    """Directory coverage and mapping statistics."""
    total = await _count(db)
    mapped = await _count(db, ScrapedProgram.mapped_to_template == True)  # noqa: E712

    recent = await db.execute(
        select(ScrapedProgram).order_by(ScrapedProgram.scraped_at.desc()).limit(20)
    )

    return DirectoryStats(
        stats=DirectoryTotals(
            total=total,
            with_api=await _count(db, ScrapedProgram.api_support == True),  # noqa: E712
            available_in_directory=await _count(db, ScrapedProgram.available_in_directory == True),  # noqa: E712
            mapped=mapped,
            unmapped=total - mapped,
        ),
        by_software=await _group_counts(db, ScrapedProgram.software, 15),
        by_category=await _group_counts(db, ScrapedProgram.category, 10),
        recent_programs=[RecentProgram.model_validate(p) for p in recent.scalars().all()],
    )


@router.patch("/{program_id}", response_model=ScrapedProgramUpdateResponse)
async def update_program(
    program_id: UUID,
    body: ScrapedProgramUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    """Manual curation: mapping flag, lifecycle status, resolved join URL."""
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    program = await db.get(ScrapedProgram, program_id)
    if not program:
        raise HTTPException(status_code=404, detail="Program not found")

    if "mapped_to_template" in changes and changes["mapped_to_template"] is not None:
        program.mapped_to_template = changes["mapped_to_template"]
    if changes.get("status"):
        program.status = changes["status"]
    if "final_join_url" in changes:
        program.final_join_url = changes["final_join_url"] or None

    await db.commit()
    return ScrapedProgramUpdateResponse(program=ScrapedProgramRead.model_validate(program))


@router.post("/resolve-redirect", response_model=ResolveRedirectResponse)
async def resolve_program_redirect(
    body: ResolveRedirectRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    """Follow a program's join link and store the cleaned destination."""
    program = await db.get(ScrapedProgram, body.program_id)
    if not program:
        raise HTTPException(status_code=404, detail="Program not found")
    if not program.join_url:
        raise HTTPException(status_code=400, detail="Program has no join URL")

    final_url = await run_in_threadpool(resolve_redirect, program.join_url)
    cleaned_url = clean_url(final_url)
    logger.info(f"Resolved {program.slug}: {program.join_url} -> {cleaned_url}")

    program.final_join_url = cleaned_url
    await db.commit()

    return ResolveRedirectResponse(
        original_url=program.join_url,
        final_url=final_url,
        cleaned_url=cleaned_url,
        program=ScrapedProgramRead.model_validate(program),
    )
