import os
from datetime import datetime

# Settings are read at import time
os.environ["TIMEZONE"] = "UTC"
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.api.deps.services import get_notifier, get_slot_locks
from agenda.core.database import Base, Database, get_db
from agenda.main import app


class InMemorySlotLocks:
    """Slot lock backend standing in for Redis."""

    def __init__(self):
        self.held = set()
        self.acquired = []

    async def acquire_slot_lock(self, professional_id: int, start: datetime) -> bool:
        key = (professional_id, start)
        if key in self.held:
            return False
        self.held.add(key)
        self.acquired.append(key)
        return True

    async def release_slot_lock(self, professional_id: int, start: datetime) -> bool:
        key = (professional_id, start)
        if key not in self.held:
            return False
        self.held.discard(key)
        return True


class RecordingNotifier:
    """Collects notifications instead of sending them to Celery."""

    def __init__(self):
        self.sent = []

    async def publish(self, task_name: str, payload: dict) -> bool:
        self.sent.append((task_name, payload))
        return True


@pytest.fixture
async def database(tmp_path):
    """A fresh database per test, SQLite unless TEST_DATABASE_URL is set."""
    url = os.getenv("TEST_DATABASE_URL") or (
        f"sqlite+aiosqlite:///{tmp_path / 'agenda_test.db'}"
    )
    database = Database(url)

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)  # Clean slate
    await database.create_all()

    yield database

    await database.dispose()


@pytest.fixture
async def db(database: Database):
    """Create a fresh database session for each test."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def slot_locks() -> InMemorySlotLocks:
    return InMemorySlotLocks()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def override_dependencies(db: AsyncSession, slot_locks, notifier):
    """Point the app at the test database and in-memory collaborators."""

    async def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_slot_locks] = lambda: slot_locks
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


# Import all domain fixtures to make them available
pytest_plugins = ["tests.fixtures.agenda_fixtures"]
