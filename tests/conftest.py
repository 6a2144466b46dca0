"""Global pytest fixtures for the design request service.

This module provides shared fixtures for testing including:
- Actors and request snapshots for the workflow core
- In-memory request store and notification dispatcher fakes
- Mock database sessions and Redis clients
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from designdesk.workflow.commands import Actor, RequestSnapshot
from designdesk.workflow.errors import StaleRequestError
from designdesk.workflow.policy import RequestStatus, UserRole


# ===========================================
# ACTOR / SNAPSHOT FIXTURES
# ===========================================


@pytest.fixture
def admin() -> Actor:
    return Actor(id=uuid4(), role=UserRole.admin, username="admin")


@pytest.fixture
def designer() -> Actor:
    return Actor(id=uuid4(), role=UserRole.designer, username="sarah.designer")


@pytest.fixture
def other_designer() -> Actor:
    return Actor(id=uuid4(), role=UserRole.designer, username="mike.creative")


@pytest.fixture
def requester() -> Actor:
    return Actor(id=uuid4(), role=UserRole.requester, username="john.marketing")


@pytest.fixture
def make_request(requester: Actor):
    """Factory for request snapshots owned by the `requester` fixture."""

    def _make(status: RequestStatus = RequestStatus.submitted, **kwargs: Any) -> RequestSnapshot:
        fields: dict[str, Any] = {
            "id": uuid4(),
            "status": status,
            "requester_id": requester.id,
            "name": "Q1 Campaign Banner",
            "code": "DRM-2026-001",
        }
        fields.update(kwargs)
        return RequestSnapshot(**fields)

    return _make


# ===========================================
# IN-MEMORY STORE / DISPATCHER
# ===========================================


class FakeRequestStore:
    """RequestStore keeping snapshots in a dict, with version checks."""

    def __init__(self, snapshots=(), admin_ids=(), usernames=None):
        self.snapshots: dict[UUID, RequestSnapshot] = {s.id: s for s in snapshots}
        self.admin_ids = list(admin_ids)
        self.usernames: dict[UUID, str] = dict(usernames or {})
        self.comments: list[dict] = []
        self.events: list[tuple[str, Any]] = []
        self.commits = 0
        self.rollbacks = 0
        # Simulates a concurrent writer landing between read and write.
        self.bump_before_save = False

    async def get_snapshot(self, request_id):
        return self.snapshots.get(request_id)

    async def save_snapshot(self, snapshot):
        current = self.snapshots[snapshot.id]
        if self.bump_before_save:
            current = replace(current, version=current.version + 1)
            self.snapshots[snapshot.id] = current
        if current.version != snapshot.version:
            raise StaleRequestError(str(snapshot.id))
        saved = replace(snapshot, version=snapshot.version + 1)
        self.snapshots[snapshot.id] = saved
        return saved

    async def add_comment(self, request_id, author_id, content):
        comment = {
            "id": uuid4(),
            "request_id": request_id,
            "author_id": author_id,
            "content": content,
            "created_at": datetime.now(timezone.utc),
        }
        self.comments.append(comment)
        return comment

    async def record_event(self, action, event):
        self.events.append((action, event))

    async def list_admin_ids(self):
        return list(self.admin_ids)

    async def get_username(self, user_id):
        return self.usernames.get(user_id)

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class FakeDispatcher:
    """Records every dispatched intent; optionally fails."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list = []

    async def dispatch(self, intents):
        if self.fail:
            raise RuntimeError("notification store unavailable")
        self.sent.extend(intents)
        return list(intents)


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


# ===========================================
# DATABASE / REDIS MOCKS
# ===========================================


@pytest_asyncio.fixture
async def db_session() -> AsyncMock:
    """Mock async database session for unit tests."""
    session = AsyncMock()
    session.add = MagicMock()
    session.expunge = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def mock_redis_client() -> MagicMock:
    """Mock Redis client for unit tests."""
    redis = MagicMock()
    redis.publish = AsyncMock(return_value=1)
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock()
    return redis


@pytest.fixture
def make_store():
    """Factory for FakeRequestStore instances."""
    return FakeRequestStore


@pytest.fixture
def failing_dispatcher() -> FakeDispatcher:
    return FakeDispatcher(fail=True)
