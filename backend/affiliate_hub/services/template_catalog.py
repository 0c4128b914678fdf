"""Template listing for the desktop client."""

from typing import Any

from sqlalchemy.orm import Session, selectinload

from affiliate_hub.models.program_template import ProgramTemplate
from affiliate_hub.models.scraped_program import STATUS_ADDED_AS_TEMPLATE
from affiliate_hub.models.user_program_selection import UserProgramSelection, SOURCE_WEB

FILTERS = ["selected", "recent", "software", "all"]
RECENT_LIMIT = 10

TEMPLATE_FIELDS = (
    "name", "software_type", "auth_type", "base_url", "login_url", "description", "icon",
    "referral_url", "api_key_label", "username_label", "password_label", "base_url_label",
    "requires_base_url",
)


def _serialize(template: ProgramTemplate, is_selected: bool) -> dict[str, Any]:
    linked = [
        program for program in template.scraped_programs
        if program.mapped_to_template and program.status == STATUS_ADDED_AS_TEMPLATE
    ]
    most_recent = max((program.scraped_at for program in linked), default=None)

    item = {"id": template.id}
    item.update({field: getattr(template, field) for field in TEMPLATE_FIELDS})
    item.update({
        "is_selected": is_selected,
        "program_count": len(linked),
        "most_recent_date": most_recent,
    })
    return item


def list_client_templates(
    db: Session,
    user_id,
    filter_name: str = "all",
    software: str = "",
    search: str = "",
) -> dict[str, Any]:
    """Active templates annotated for one account, filtered the way the client asks."""
    selected_ids = {
        row.template_id
        for row in db.query(UserProgramSelection.template_id).filter(
            UserProgramSelection.user_id == user_id,
            UserProgramSelection.source == SOURCE_WEB,
        )
    }

    templates = (
        db.query(ProgramTemplate)
        .options(selectinload(ProgramTemplate.scraped_programs))
        .filter(ProgramTemplate.is_active == True)  # noqa: E712
        .order_by(ProgramTemplate.display_order.asc(), ProgramTemplate.name.asc())
        .all()
    )
    result = [_serialize(template, template.id in selected_ids) for template in templates]

    if filter_name == "selected":
        result = [item for item in result if item["is_selected"]]
    elif filter_name == "recent":
        result = sorted(
            (item for item in result if item["most_recent_date"]),
            key=lambda item: item["most_recent_date"],
            reverse=True,
        )[:RECENT_LIMIT]

    if software:
        result = [item for item in result if item["software_type"].lower() == software.lower()]

    if search:
        needle = search.lower()
        result = [item for item in result if needle in item["name"].lower()]

    return {
        "templates": result,
        "software_types": sorted({template.software_type for template in templates}),
        "filters": {"available": FILTERS, "current": filter_name},
        "meta": {
            "total": len(result),
            "selected_count": sum(1 for item in result if item["is_selected"]),
        },
    }
