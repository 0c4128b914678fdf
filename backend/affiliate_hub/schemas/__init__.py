"""Pydantic schemas package."""

from affiliate_hub.schemas.scrape_job import (
    ScrapeJobRead,
    ScrapeTriggerRequest,
    ScrapeTriggerResponse,
    ScrapeJobResponse,
    ScrapeJobList,
)
from affiliate_hub.schemas.scraped_program import (
    ScrapedProgramRead,
    ScrapedProgramList,
    ScrapedProgramUpdate,
    ScrapedProgramUpdateResponse,
    ResolveRedirectRequest,
    ResolveRedirectResponse,
    ExportRequest,
    ExportResults,
    ExportResponse,
    DirectoryStats,
)
from affiliate_hub.schemas.client import (
    SyncRequest,
    SyncResponse,
    SyncedProgram,
    SyncedProgramList,
    ClientTemplate,
    ClientTemplateList,
)

__all__ = [
    # ScrapeJob
    "ScrapeJobRead",
    "ScrapeTriggerRequest",
    "ScrapeTriggerResponse",
    "ScrapeJobResponse",
    "ScrapeJobList",
    # ScrapedProgram
    "ScrapedProgramRead",
    "ScrapedProgramList",
    "ScrapedProgramUpdate",
    "ScrapedProgramUpdateResponse",
    "ResolveRedirectRequest",
    "ResolveRedirectResponse",
    "ExportRequest",
    "ExportResults",
    "ExportResponse",
    "DirectoryStats",
    # Client
    "SyncRequest",
    "SyncResponse",
    "SyncedProgram",
    "SyncedProgramList",
    "ClientTemplate",
    "ClientTemplateList",
]
