"""
Shared fixtures for backend tests.

Tests run against a throwaway SQLite file. The database URL has to be in
the environment before ``affiliate_hub`` is imported, because the engines
are created at import time from the cached settings.
"""

import os
import sys
import tempfile
import uuid
from pathlib import Path

backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

_db_dir = tempfile.mkdtemp(prefix="affiliate_hub_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest  # noqa: E402

import affiliate_hub.models  # noqa: E402,F401
from affiliate_hub.config import get_settings  # noqa: E402
from affiliate_hub.models.base import Base, SyncSessionLocal, sync_engine  # noqa: E402
from affiliate_hub.models.user import User  # noqa: E402
from affiliate_hub.scrapers.directory import DirectoryScraper  # noqa: E402
from affiliate_hub.services.auth_service import generate_api_key  # noqa: E402

settings = get_settings()


@pytest.fixture(autouse=True)
def tables():
    """Fresh schema for every test."""
    Base.metadata.create_all(sync_engine)
    yield
    Base.metadata.drop_all(sync_engine)


@pytest.fixture
def db(tables):
    session = SyncSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(tables):
    from fastapi.testclient import TestClient

    from affiliate_hub.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Insert an active user with an API key. The password hash is a placeholder."""

    def _make(email: str = "user@example.com", admin: bool = False, is_active: bool = True) -> User:
        user = User(
            id=uuid.uuid4(),
            email=email,
            display_name=email.split("@")[0],
            hashed_password="not-a-real-hash",
            api_key=generate_api_key(),
            role=settings.admin_role if admin else 0,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin_headers(make_user):
    admin = make_user("ops@example.com", admin=True)
    return {"X-API-Key": admin.api_key}


def build_listing_row(
    name: str,
    slug: str,
    software: str = "MyAffiliates",
    commission: str = "Up to 45% RevShare",
    api: str = "Yes",
    available: str = "No",
    category: str = "Casino",
    with_links: bool = True,
) -> str:
    """HTML of one directory listing row, shaped like the live table."""
    cells = [
        f'<td><img src="https://cdn.example.com/logos/{slug}.png">'
        f'<a href="/affiliate-programs/{slug}/">{name}</a></td>',
        f"<td>{software}</td>",
        f"<td>{commission}</td>",
        f"<td>{api}</td>",
        f"<td>{available}</td>",
        f"<td>{category}</td>",
    ]
    if with_links:
        cells.append(
            f'<td><a href="/affiliate-programs/{slug}/">Review</a>'
            f'<a href="https://statsdrone.com/glm/{slug}">Join</a></td>'
        )
    return f"<tr>{''.join(cells)}</tr>"


class FakeScraper:
    """Stands in for the browser: returns canned rows, parses them for real."""

    def __init__(self, rows=None, error: Exception | None = None):
        self.rows = list(rows or [])
        self.error = error
        self.calls = []
        self._parser = DirectoryScraper(base_url="https://statsdrone.com/affiliate-programs/")

    def scrape(self, software=None):
        self.calls.append(software)
        if self.error is not None:
            raise self.error
        return list(self.rows)

    def normalize(self, raw):
        return self._parser.normalize(raw)


@pytest.fixture
def listing_row():
    return build_listing_row


@pytest.fixture
def fake_scraper():
    return FakeScraper
