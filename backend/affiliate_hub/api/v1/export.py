"""Operator endpoint for exporting scraped programs into templates."""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_hub.dependencies.auth import require_admin
from affiliate_hub.models.base import get_db
from affiliate_hub.models.user import User
from affiliate_hub.schemas.scraped_program import ExportRequest, ExportResponse, ExportResults
from affiliate_hub.services.template_exporter import export_templates

router = APIRouter(prefix="/admin/export", tags=["admin"])


@router.post("", response_model=ExportResponse)
async def export_to_templates(
    body: ExportRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    """Create templates from unmapped programs, or preview them with ``dryRun``."""
    result = await db.run_sync(export_templates, body.dry_run, body.only_with_api, body.limit)
    return ExportResponse(dry_run=body.dry_run, results=ExportResults(**asdict(result)))
