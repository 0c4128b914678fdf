"""Base database configuration and mixins."""

import uuid
from typing import AsyncGenerator

from sqlalchemy import Column, DateTime, func, create_engine
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, declared_attr, sessionmaker

from affiliate_hub.config import get_settings

settings = get_settings()


def _pool_options(url: str, **options) -> dict:
    # SQLite dialects pick their own pool class and reject sizing arguments
    if url.startswith("sqlite"):
        return {}
    return options


# Async engine for FastAPI
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_pool_options(settings.database_url, pool_size=10, max_overflow=20, pool_timeout=30),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Sync engine for Celery tasks and worker threads
sync_database_url = settings.sync_database_url
sync_engine = create_engine(
    sync_database_url,
    echo=settings.debug,
    **_pool_options(sync_database_url, pool_size=5, max_overflow=10, pool_timeout=30),
)

SyncSessionLocal = sessionmaker(
    bind=sync_engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + "s"


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDMixin:
    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
