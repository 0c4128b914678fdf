"""Desktop client endpoints — API-key authenticated, no session cookie."""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_hub.dependencies.auth import require_client_user
from affiliate_hub.models.base import get_db
from affiliate_hub.models.user import User
from affiliate_hub.schemas.client import (
    SyncRequest,
    SyncResponse,
    SyncedProgramList,
    ClientTemplateList,
)
from affiliate_hub.services.selection_sync import sync_selection, list_synced
from affiliate_hub.services.template_catalog import list_client_templates

router = APIRouter(prefix="/client", tags=["client"])

TemplateFilter = Literal["selected", "recent", "software", "all"]


@router.post("/programs/sync", response_model=SyncResponse, response_model_exclude_none=True)
async def sync_program(
    body: SyncRequest,
    user: User = Depends(require_client_user),
    db: AsyncSession = Depends(get_db),
):
    """Apply a selection change made in the desktop client."""
    return await db.run_sync(
        sync_selection, user.id, body.program_code, body.program_name, body.action
    )


@router.get("/programs/sync", response_model=SyncedProgramList)
async def synced_programs(
    user: User = Depends(require_client_user),
    db: AsyncSession = Depends(get_db),
):
    """The account's current selections, for the client to reconcile against."""
    return SyncedProgramList(programs=await db.run_sync(list_synced, user.id))


@router.get("/templates", response_model=ClientTemplateList)
async def client_templates(
    filter: TemplateFilter = Query("all", description="selected, recent, software or all"),
    software: str = Query("", description="Template software key"),
    search: str = Query("", description="Search in name"),
    user: User = Depends(require_client_user),
    db: AsyncSession = Depends(get_db),
):
    """Active templates annotated with the caller's web selections."""
    return await db.run_sync(list_client_templates, user.id, filter, software, search)
