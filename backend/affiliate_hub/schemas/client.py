"""Pydantic schemas for the desktop client endpoints."""

from datetime import datetime
from uuid import UUID

from affiliate_hub.schemas.common import CamelModel


class SyncRequest(CamelModel):
    program_code: str
    program_name: str | None = None
    action: str | None = None


class SyncResponse(CamelModel):
    success: bool = True
    synced: bool
    program: str | None = None
    action: str | None = None
    message: str | None = None


class SyncedProgram(CamelModel):
    program_id: UUID
    name: str
    code: str
    software: str
    selected_at: datetime


class SyncedProgramList(CamelModel):
    programs: list[SyncedProgram]


class ClientTemplate(CamelModel):
    id: UUID
    name: str
    software_type: str
    auth_type: str
    base_url: str | None = None
    login_url: str | None = None
    description: str | None = None
    icon: str | None = None
    referral_url: str | None = None
    api_key_label: str | None = None
    username_label: str | None = None
    password_label: str | None = None
    base_url_label: str | None = None
    requires_base_url: bool = False
    is_selected: bool = False
    program_count: int = 0
    most_recent_date: datetime | None = None


class TemplateFilters(CamelModel):
    available: list[str]
    current: str


class TemplateListMeta(CamelModel):
    total: int
    selected_count: int


class ClientTemplateList(CamelModel):
    templates: list[ClientTemplate]
    software_types: list[str]
    filters: TemplateFilters
    meta: TemplateListMeta
