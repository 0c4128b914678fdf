"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import redis
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.middleware.sessions import SessionMiddleware
from sqlalchemy import text

from affiliate_hub.config import get_settings
from affiliate_hub.models.base import engine, AsyncSessionLocal, Base
import affiliate_hub.models  # noqa: F401
from affiliate_hub.api.v1 import router as api_v1_router

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting %s...", settings.app_name)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")
    yield
    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Affiliate program directory ingestion and desktop client sync",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)

# Include API routers
app.include_router(api_v1_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed body fields are a plain 400."""
    return JSONResponse(status_code=400, content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}


async def _check_database() -> dict:
    async with AsyncSessionLocal() as session:
        await session.execute(text("SELECT 1"))
    return {"ok": True}


async def _check_redis() -> dict:
    client = redis.from_url(settings.redis_url, socket_timeout=5)
    await run_in_threadpool(client.ping)
    return {"ok": True}


async def _check_workers() -> dict:
    from affiliate_hub.tasks.celery_app import celery_app

    active = await run_in_threadpool(celery_app.control.inspect(timeout=5).active)
    return {"ok": bool(active), "workers": sorted(active) if active else []}


HEALTH_CHECKS = {
    "database": _check_database,
    "redis": _check_redis,
    "celery_workers": _check_workers,
}


@app.get("/health/detailed")
async def detailed_health_check():
    """Database, broker and worker reachability. Degraded if any one fails."""
    checks = {}
    for name, check in HEALTH_CHECKS.items():
        try:
            checks[name] = await check()
        except Exception as e:
            checks[name] = {"ok": False, "message": str(e)}

    return {
        "status": "healthy" if all(c["ok"] for c in checks.values()) else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
