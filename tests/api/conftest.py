"""
Fixtures for router tests.

Routers are mounted on a bare FastAPI app and their service dependencies
replaced with AsyncMocks through dependency_overrides.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from tutordesk.models.enums import UserRole
from tutordesk.models.user import Actor

NOW = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class StaticSubscription:
    """Subscription double yielding one snapshot."""

    def __init__(self, snapshot, name: str = "static") -> None:
        self.name = name
        self._snapshot = snapshot
        self.unsubscribed = False

    async def receive(self, timeout=None):
        if self._snapshot is None:
            raise asyncio.TimeoutError
        return self._snapshot

    def unsubscribe(self) -> None:
        self.unsubscribed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


@pytest.fixture
def student_actor() -> Actor:
    return Actor(id="student-1", role=UserRole.STUDENT, display_name="Ada", email="ada@example.edu")


@pytest.fixture
def staff_actor() -> Actor:
    return Actor(id="staff-1", role=UserRole.STAFF, display_name="Grace", email="grace@example.edu")


@pytest.fixture
def session_payload() -> dict:
    return {
        "id": "s-1",
        "owner_id": "student-1",
        "owner_email": "ada@example.edu",
        "subject": "Calc I",
        "context": "Limits",
        "mode": "INTERACTIVE",
        "status": "ACTIVE",
        "hidden": False,
        "auto_deleted": False,
        "version": 1,
        "created_at": NOW,
        "updated_at": NOW,
        "last_active_at": NOW,
        "closed_at": None,
    }


@pytest.fixture
def static_subscription():
    """Provide the StaticSubscription class for building service return values."""
    return StaticSubscription
