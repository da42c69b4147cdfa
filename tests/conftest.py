import asyncio
import os
import tempfile
import uuid

# Settings are read once at import time, so the test environment has to be
# in place before anything under `app` is imported.
_DB_DIR = tempfile.mkdtemp(prefix="booking-tests-")
os.environ["APP_ENV"] = "test"
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["AVAILABILITY_TIMEZONE_MODE"] = "page"
os.environ.pop("PUSH_GATEWAY_URL", None)

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db.session import AsyncSessionLocal, init_db, reset_db  # noqa: E402
from app.main import create_app  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def empty_schema():
    """
    Start the run from freshly created, empty tables.
    """
    asyncio.run(reset_db())


@pytest.fixture(scope="session")
def client() -> TestClient:
    """
    Shared TestClient fixture for all API tests.

    Entering the client runs the app lifespan, which creates the schema.
    """
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db_session():
    """
    Fresh AsyncSession on the test database (schema created if missing).
    """
    await init_db()
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def unique() -> str:
    """
    Short random suffix so tests sharing one database don't collide on
    slugs or user ids.
    """
    return uuid.uuid4().hex[:8]


def build_page_payload(
    slug: str,
    *,
    timezone: str = "UTC",
    availability: list[dict] | None = None,
    meeting_types: list[dict] | None = None,
    is_active: bool = True,
) -> dict:
    if availability is None:
        # Monday..Friday 09:00-17:00
        availability = [
            {"day_of_week": day, "start_time": "09:00", "end_time": "17:00"}
            for day in range(1, 6)
        ]
    if meeting_types is None:
        meeting_types = [
            {"type_id": "intro-60", "name": "Intro call", "duration_minutes": 60},
            {
                "type_id": "retired",
                "name": "Old format",
                "duration_minutes": 30,
                "is_active": False,
            },
        ]
    return {
        "slug": slug,
        "title": "Meet with Jane",
        "timezone": timezone,
        "owner_name": "Jane Owner",
        "owner_email": "jane@example.com",
        "is_active": is_active,
        "meeting_types": meeting_types,
        "availability": availability,
    }


@pytest.fixture
def page_payload():
    """
    Builder for booking page create payloads.
    """
    return build_page_payload
