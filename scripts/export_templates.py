"""Export scraped directory programs into program templates.

Dry run by default; pass --live to write.

Usage:
    docker compose exec backend python -m scripts.export_templates --only-api
    docker compose exec backend python -m scripts.export_templates --live --limit 25
"""

import argparse
import logging

from affiliate_hub.models.base import SyncSessionLocal
from affiliate_hub.services.template_exporter import export_templates

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def run(live: bool = False, only_api: bool = False, limit: int | None = None):
    db = SyncSessionLocal()
    try:
        result = export_templates(db, dry_run=not live, only_with_api=only_api, limit=limit)

        print(f"\n=== Template Export ({'live' if live else 'dry run'}) ===")
        print(f"  created: {result.created}")
        print(f"  skipped: {result.skipped}")
        print(f"  errors:  {result.errors}\n")
        for item in result.programs:
            detail = item.get("reason") or item.get("error") or item.get("software", "")
            print(f"  {item['status']:<13} {item['name']:<45} {detail}")
        return result
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export scraped programs to templates")
    parser.add_argument("--live", action="store_true", help="Write templates (default is a dry run)")
    parser.add_argument("--only-api", action="store_true", help="Only programs with API support")
    parser.add_argument("--limit", type=int, help="Maximum programs to consider")
    args = parser.parse_args()
    run(live=args.live, only_api=args.only_api, limit=args.limit)
