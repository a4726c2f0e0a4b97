"""
Shared test fixtures and configuration for entire test suite.

Provides: file-backed SQLite record store, in-memory blob store, fake clock,
actors and fully wired services.
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from tutordesk.application.services import (
    ConsistencyManager,
    FileService,
    MirrorReconciler,
    RetentionSweeper,
    SessionService,
    SubscriptionHub,
    UserService,
)
from tutordesk.boundary.db.connection import create_tables, get_async_session_factory
from tutordesk.boundary.db.record_store import RecordStore
from tutordesk.boundary.events.change_feed import ChangeFeed
from tutordesk.core.exceptions import FileRecordNotFoundError, TransientStoreFailure
from tutordesk.models.enums import UserRole
from tutordesk.models.user import Actor


class FakeClock:
    """Deterministic, manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class InMemoryBlobStore:
    """BlobStore double with failure injection."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.fail_put = False
        self.fail_delete = False
        self.deleted: list[str] = []

    async def put(self, path, data, content_type, on_progress=None) -> None:
        if self.fail_put:
            raise TransientStoreFailure("blob put failed", operation="put_object")
        self.objects[path] = data
        self.content_types[path] = content_type
        if on_progress:
            on_progress(50.0)
            on_progress(100.0)

    async def get(self, path) -> bytes:
        if path not in self.objects:
            raise FileRecordNotFoundError(path)
        return self.objects[path]

    async def delete(self, path) -> None:
        if self.fail_delete:
            raise TransientStoreFailure("blob delete failed", operation="delete_object")
        self.objects.pop(path, None)
        self.deleted.append(path)


@pytest.fixture
def clock() -> FakeClock:
    """Provide clock starting on a fixed Monday morning (UTC)."""
    return FakeClock(datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
async def record_store(tmp_path):
    """
    Create a file-backed SQLite record store with all tables.

    Yields:
        RecordStore: Store with its own change feed
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tutordesk.db'}")
    await create_tables(engine)
    store = RecordStore(
        get_async_session_factory(engine),
        change_feed=ChangeFeed(),
        op_timeout=5.0,
        engine=engine,
    )
    yield store
    await store.dispose()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """Provide in-memory blob store."""
    return InMemoryBlobStore()


@pytest.fixture
def manager(record_store, blob_store, clock) -> ConsistencyManager:
    """Provide consistency manager with instant retries."""
    return ConsistencyManager(
        record_store,
        blob_store,
        authoritative_attempts=2,
        retry_backoff_seconds=0,
        clock=clock,
    )


@pytest.fixture
def hub(record_store) -> SubscriptionHub:
    """Provide subscription hub with instant retries."""
    return SubscriptionHub(record_store, retry_attempts=3, retry_backoff_seconds=0)


@pytest.fixture
def session_service(manager, hub) -> SessionService:
    return SessionService(manager, hub)


@pytest.fixture
def file_service(manager, hub) -> FileService:
    return FileService(manager, hub, upload_prefix="user_uploads")


@pytest.fixture
def user_service(record_store) -> UserService:
    return UserService(record_store)


@pytest.fixture
def sweeper(manager) -> RetentionSweeper:
    return RetentionSweeper(manager, inactivity_hours=24, batch_size=2)


@pytest.fixture
def reconciler(manager) -> MirrorReconciler:
    return MirrorReconciler(manager, batch_size=2)


@pytest.fixture
def student() -> Actor:
    return Actor(id="student-1", role=UserRole.STUDENT, display_name="Ada", email="ada@example.edu")


@pytest.fixture
def other_student() -> Actor:
    return Actor(id="student-2", role=UserRole.STUDENT, display_name="Ben", email="ben@example.edu")


@pytest.fixture
def staff() -> Actor:
    return Actor(id="staff-1", role=UserRole.STAFF, display_name="Grace", email="grace@example.edu")


@pytest.fixture
def other_staff() -> Actor:
    return Actor(id="staff-2", role=UserRole.STAFF, display_name="Alan", email="alan@example.edu")


@pytest.fixture
def wait_for_snapshot():
    """
    Provide helper that reads snapshots until one satisfies a predicate.

    Returns:
        Callable: async (subscription, predicate, timeout=3.0) -> snapshot
    """

    async def _wait(subscription, predicate, timeout: float = 3.0):
        async def _loop():
            while True:
                snapshot = await subscription.receive()
                if predicate(snapshot):
                    return snapshot

        return await asyncio.wait_for(_loop(), timeout)

    return _wait
