"""Pydantic schemas for scraped directory programs."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from affiliate_hub.schemas.common import CamelModel


class ScrapedProgramRead(CamelModel):
    id: UUID
    slug: str
    name: str
    software: str | None = None
    commission: str | None = None
    api_support: bool = False
    available_in_directory: bool = False
    category: str | None = None
    logo_url: str | None = None
    review_url: str | None = None
    join_url: str | None = None
    final_join_url: str | None = None
    source_url: str | None = None
    mapped_to_template: bool = False
    template_id: UUID | None = None
    status: str
    scraped_at: datetime
    last_checked_at: datetime


class ScrapedProgramList(CamelModel):
    programs: list[ScrapedProgramRead]


class ScrapedProgramUpdate(CamelModel):
    mapped_to_template: bool | None = None
    status: str | None = None
    final_join_url: str | None = None


class ScrapedProgramUpdateResponse(CamelModel):
    success: bool = True
    program: ScrapedProgramRead


class ResolveRedirectRequest(CamelModel):
    program_id: UUID


class ResolveRedirectResponse(CamelModel):
    success: bool = True
    original_url: str
    final_url: str
    cleaned_url: str
    program: ScrapedProgramRead


class ExportRequest(CamelModel):
    dry_run: bool = True
    only_with_api: bool = Field(False, alias="onlyWithAPI")
    limit: int | None = Field(None, ge=1)


class ExportResults(CamelModel):
    created: int = 0
    skipped: int = 0
    errors: int = 0
    programs: list[dict[str, Any]] = []


class ExportResponse(CamelModel):
    success: bool = True
    dry_run: bool
    results: ExportResults


class DirectoryTotals(CamelModel):
    total: int
    with_api: int = Field(alias="withAPI")
    available_in_directory: int
    mapped: int
    unmapped: int


class GroupCount(CamelModel):
    label: str | None = None
    count: int


class RecentProgram(CamelModel):
    id: UUID
    name: str
    software: str | None = None
    category: str | None = None
    api_support: bool = False
    mapped_to_template: bool = False
    scraped_at: datetime


class DirectoryStats(CamelModel):
    stats: DirectoryTotals
    by_software: list[GroupCount]
    by_category: list[GroupCount]
    recent_programs: list[RecentProgram]
