"""API v1 router aggregation."""

from fastapi import APIRouter

from affiliate_hub.api.v1.scrape import router as scrape_router
from affiliate_hub.api.v1.programs import router as programs_router
from affiliate_hub.api.v1.export import router as export_router
from affiliate_hub.api.v1.client import router as client_router

router = APIRouter(prefix="/api/v1")

router.include_router(scrape_router)
router.include_router(programs_router)
router.include_router(export_router)
router.include_router(client_router)
