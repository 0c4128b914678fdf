"""Map scraped directory programs onto program templates.

An export pass only looks at programs that are not yet mapped, so running
it twice in live mode creates nothing the second time. Dry runs evaluate
every candidate the same way but write nothing.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from affiliate_hub.config import get_settings
from affiliate_hub.models.program_template import ProgramTemplate, AUTH_API_KEY, AUTH_CREDENTIALS
from affiliate_hub.models.scraped_program import ScrapedProgram, STATUS_ADDED_AS_TEMPLATE

logger = logging.getLogger(__name__)
settings = get_settings()

# Directory platform label -> template software key
SOFTWARE_MAPPING = {
    "MyAffiliates": "myaffiliates",
    "Cellxpert": "cellxpert",
    "RavenTrack": "raventrack",
    "ReferOn": "referon",
    "Affilka": "affilka",
    "Income Access": "income-access",
    "Scaleo": "scaleo",
    "MAP": "map",
    "Affise": "affise",
    "Everflow": "everflow",
    "Impact": "impact",
}

EXPORTED_DISPLAY_ORDER = 999


@dataclass
class ExportResult:
    created: int = 0
    skipped: int = 0
    errors: int = 0
    programs: list[dict[str, Any]] = field(default_factory=list)


def platform_key(software: str | None) -> str:
    """Template software key for a directory platform label."""
    if not software or not software.strip():
        return "other"
    software = software.strip()
    if software in SOFTWARE_MAPPING:
        return SOFTWARE_MAPPING[software]
    return re.sub(r"[^a-z0-9]+", "-", software.lower()).strip("-") or "other"


def find_existing_template(db: Session, name: str, software_key: str) -> ProgramTemplate | None:
    """Template already covering this program, by name (any case) or platform key."""
    return db.query(ProgramTemplate).filter(
        or_(
            func.lower(ProgramTemplate.name) == name.lower(),
            ProgramTemplate.software_type == software_key,
        )
    ).first()


def build_template(program: ScrapedProgram, software_key: str) -> ProgramTemplate:
    description = [
        f"Commission: {program.commission}" if program.commission else None,
        f"Category: {program.category}" if program.category else None,
        "Source: StatsDrone",
    ]
    login_url = None
    if program.review_url:
        login_url = program.review_url
        if login_url.startswith("/"):
            login_url = f"{settings.directory_site_url.rstrip('/')}{login_url}"

    return ProgramTemplate(
        id=uuid.uuid4(),
        name=program.name,
        software_type=software_key,
        auth_type=AUTH_API_KEY if program.api_support else AUTH_CREDENTIALS,
        login_url=login_url,
        referral_url=program.final_join_url or program.join_url,
        description="\n".join(line for line in description if line),
        display_order=EXPORTED_DISPLAY_ORDER,
        is_active=True,
    )


def export_templates(
    db: Session,
    dry_run: bool = True,
    only_with_api: bool = False,
    limit: int | None = None,
) -> ExportResult:
    """Create templates for unmapped scraped programs."""
    query = db.query(ScrapedProgram).filter(ScrapedProgram.mapped_to_template == False)  # noqa: E712
    if only_with_api:
        query = query.filter(ScrapedProgram.api_support == True)  # noqa: E712
    query = query.order_by(ScrapedProgram.name.asc())
    if limit:
        query = query.limit(limit)
    programs = query.all()

    result = ExportResult()
    # Dry runs never write, so remember what this batch would already have created
    planned_names: set[str] = set()
    planned_keys: set[str] = set()

    for program in programs:
        name = program.name
        try:
            software_key = platform_key(program.software)
            already_planned = dry_run and (name.lower() in planned_names or software_key in planned_keys)
            if already_planned or find_existing_template(db, name, software_key):
                result.skipped += 1
                result.programs.append({"name": name, "status": "skipped", "reason": "already mapped"})
                continue

            if dry_run:
                planned_names.add(name.lower())
                planned_keys.add(software_key)
                result.created += 1
                result.programs.append({"name": name, "status": "would_create", "software": software_key})
                continue

            template = build_template(program, software_key)
            db.add(template)
            db.flush()

            program.mapped_to_template = True
            program.template_id = template.id
            program.status = STATUS_ADDED_AS_TEMPLATE
            db.commit()

            result.created += 1
            result.programs.append({
                "name": name,
                "status": "created",
                "templateId": str(template.id),
                "software": software_key,
            })
        except Exception as e:
            db.rollback()
            logger.warning(f"Failed to export {name}: {e}")
            result.errors += 1
            result.programs.append({"name": name, "status": "error", "error": str(e)})

    logger.info(
        f"Template export ({'dry run' if dry_run else 'live'}): "
        f"{result.created} created, {result.skipped} skipped, {result.errors} errors"
    )
    return result
