"""Pydantic schemas for scrape jobs."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from affiliate_hub.schemas.common import CamelModel


class ScrapeJobRead(CamelModel):
    """Full scrape job snapshot, as polled by the dashboard."""

    id: UUID
    software: str
    status: str
    programs_found: int = 0
    current_progress: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    error: str | None = None


class ScrapeTriggerRequest(CamelModel):
    software: str | None = None
    limit: int | None = Field(None, ge=1)


class ScrapeTriggerResponse(CamelModel):
    success: bool = True
    log_id: UUID
    status: str | None = None
    programs_found: int | None = None
    message: str


class ScrapeJobResponse(CamelModel):
    log: ScrapeJobRead


class ScrapeJobList(CamelModel):
    logs: list[ScrapeJobRead]
