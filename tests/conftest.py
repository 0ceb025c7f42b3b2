"""Pytest fixtures for Inventra tests."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from inventra.database.base import Base
from inventra.modules.auth.auth import AuthenticatedUser
from inventra.modules.export.channel import ExportTaskChannel
from inventra.modules.export.job_store import SqlAlchemyExportJobStore
from inventra.modules.export.notifier import StatusNotifier
from inventra.modules.export.schemas import ExportStatusUpdate, ExportTask
from inventra.modules.export.storage import ObjectStorage

# Use SQLite for lightweight in-process testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///file::memory:?cache=shared&uri=true"

PUBLIC_URL = "https://inventra-exports.test"
FIXED_NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class RecordingTaskChannel(ExportTaskChannel):
    """Keeps enqueued tasks in a list; optionally rejects them."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.tasks: list[ExportTask] = []
        self.fail_with = fail_with

    def enqueue(self, task: ExportTask) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.tasks.append(task)


class RecordingNotifier(StatusNotifier):
    def __init__(self) -> None:
        self.updates: list[ExportStatusUpdate] = []

    async def publish(self, update: ExportStatusUpdate) -> None:
        self.updates.append(update)

    @property
    def statuses(self) -> list[str]:
        return [u.status.value for u in self.updates]


class InMemoryStorage(ObjectStorage):
    def __init__(self, fail_with: Exception | None = None) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_with = fail_with

    def put(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.objects[key] = (data, content_type)
        return f"{PUBLIC_URL}/{key}"


class StaticDataSource:
    """Returns the same records for every category, or raises."""

    def __init__(self, records=None, fail_with: Exception | None = None) -> None:
        self.records = records if records is not None else []
        self.fail_with = fail_with
        self.calls = []

    async def fetch_all(self, category):
        self.calls.append(category)
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.records)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def async_test_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def async_test_session(async_test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        async_test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def job_store(async_test_session) -> SqlAlchemyExportJobStore:
    return SqlAlchemyExportJobStore(async_test_session)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def current_user(owner_id) -> AuthenticatedUser:
    return AuthenticatedUser(id=owner_id, email="clerk@inventra.io")


@pytest.fixture
def task_channel() -> RecordingTaskChannel:
    return RecordingTaskChannel()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()
