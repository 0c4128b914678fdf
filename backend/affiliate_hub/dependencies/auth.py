"""Authentication dependencies for FastAPI routes."""

import uuid

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_hub.config import get_settings
from affiliate_hub.models.base import get_db
from affiliate_hub.models.user import User
from affiliate_hub.services.auth_service import validate_api_key_format

settings = get_settings()


def get_api_key(request: Request) -> str | None:
    """Bearer credential from ``X-API-Key`` or ``Authorization: Bearer``."""
    api_key = request.headers.get("x-api-key")
    if api_key:
        return api_key.strip()
    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


async def get_user_by_api_key(db: AsyncSession, api_key: str) -> User | None:
    if not validate_api_key_format(api_key):
        return None
    result = await db.execute(
        select(User).where(User.api_key == api_key, User.is_active == True)  # noqa: E712
    )
    return result.scalar_one_or_none()


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User | None:
    """Return the logged-in user or None."""
    try:
        user_id = uuid.UUID(str(request.session.get("user_id")))
    except ValueError:
        return None
    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active == True)  # noqa: E712
    )
    return result.scalar_one_or_none()


async def require_client_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """Desktop client routes: API key only, no session cookie."""
    api_key = get_api_key(request)
    if not api_key:
        raise HTTPException(status_code=401, detail="API key required")
    user = await get_user_by_api_key(db, api_key)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return user


async def require_admin(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """Operator routes: session user, or an operator's API key for scripted use."""
    user = await get_current_user(request, db)
    if user is None:
        api_key = get_api_key(request)
        if api_key:
            user = await get_user_by_api_key(db, api_key)

    if not user or (user.role or 0) < settings.admin_role:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
