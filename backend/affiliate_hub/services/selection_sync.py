"""Reconcile desktop-client program selections with the web account."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from affiliate_hub.models.program_template import ProgramTemplate
from affiliate_hub.models.user_program_selection import UserProgramSelection, SOURCE_CLIENT

logger = logging.getLogger(__name__)

ADD_ACTIONS = ("add", "import")
REMOVE_ACTION = "remove"


def find_template(db: Session, program_code: str | None, program_name: str | None) -> ProgramTemplate | None:
    """Active template by name (any case), falling back to the platform key."""
    active = db.query(ProgramTemplate).filter(ProgramTemplate.is_active == True)  # noqa: E712
    if program_name:
        template = active.filter(func.lower(ProgramTemplate.name) == program_name.strip().lower()).first()
        if template:
            return template
    if program_code:
        return active.filter(ProgramTemplate.software_type == program_code.strip()).first()
    return None


def add_selection(db: Session, user_id, template_id, source: str = SOURCE_CLIENT) -> None:
    """Idempotently mark (user, template) as selected."""
    existing = db.get(UserProgramSelection, (user_id, template_id))
    if existing:
        return
    db.add(UserProgramSelection(
        user_id=user_id,
        template_id=template_id,
        source=source,
        selected_at=datetime.now(timezone.utc),
    ))
    try:
        db.flush()
    except IntegrityError:
        # A concurrent request inserted the same pair first
        db.rollback()


def remove_selection(db: Session, user_id, template_id) -> None:
    db.query(UserProgramSelection).filter(
        UserProgramSelection.user_id == user_id,
        UserProgramSelection.template_id == template_id,
    ).delete(synchronize_session=False)


def sync_selection(
    db: Session,
    user_id,
    program_code: str | None,
    program_name: str | None,
    action: str | None,
) -> dict[str, Any]:
    """Apply one client-side selection change.

    Unknown programs and unknown actions are not errors: the client may
    track programs the web catalog does not curate, and newer clients may
    send actions this version does not know.
    """
    template = find_template(db, program_code, program_name)
    if template is None:
        logger.info(f"No template for client program {program_code!r}/{program_name!r}")
        return {"success": True, "synced": False, "message": "No matching web program template found"}

    if action in ADD_ACTIONS:
        add_selection(db, user_id, template.id)
        return {"success": True, "synced": True, "program": template.name, "action": "selected"}

    if action == REMOVE_ACTION:
        remove_selection(db, user_id, template.id)
        return {"success": True, "synced": True, "program": template.name, "action": "unselected"}

    logger.info(f"Ignoring unknown client sync action {action!r}")
    return {"success": True, "synced": False, "message": "Unknown action", "action": action}


def list_synced(db: Session, user_id) -> list[dict[str, Any]]:
    """Current selections with the program fields the client reconciles against."""
    rows = (
        db.query(UserProgramSelection, ProgramTemplate)
        .join(ProgramTemplate, UserProgramSelection.template_id == ProgramTemplate.id)
        .filter(UserProgramSelection.user_id == user_id)
        .order_by(UserProgramSelection.selected_at.asc())
        .all()
    )
    return [
        {
            "program_id": selection.template_id,
            "name": template.name,
            "code": template.software_type,
            "software": template.software_type,
            "selected_at": selection.selected_at,
        }
        for selection, template in rows
    ]
