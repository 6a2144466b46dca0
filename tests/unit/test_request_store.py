"""Tests for the SQL-backed request store."""

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from designdesk.models import AuditLog, Comment
from designdesk.store import SqlRequestStore
from designdesk.workflow.commands import Actor, RequestSnapshot
from designdesk.workflow.effects import TransitionEvent
from designdesk.workflow.errors import StaleRequestError
from designdesk.workflow.policy import RequestStatus, UserRole


def _snapshot(**kwargs):
    fields = dict(id=uuid4(), status=RequestStatus.completed, requester_id=uuid4(), version=3)
    fields.update(kwargs)
    return RequestSnapshot(**fields)


class TestSaveSnapshot:

    async def test_bumps_version(self, db_session):
        db_session.execute.return_value = MagicMock(rowcount=1)
        saved = await SqlRequestStore(db_session).save_snapshot(_snapshot())
        assert saved.version == 4
        assert saved.status == RequestStatus.completed

    async def test_update_is_version_guarded(self, db_session):
        db_session.execute.return_value = MagicMock(rowcount=1)
        snapshot = _snapshot()
        await SqlRequestStore(db_session).save_snapshot(snapshot)

        statement = db_session.execute.await_args.args[0]
        assert "design_requests.version" in str(statement.whereclause)

    async def test_lost_race_raises_stale(self, db_session):
        db_session.execute.return_value = MagicMock(rowcount=0)
        snapshot = _snapshot()
        with pytest.raises(StaleRequestError) as exc_info:
            await SqlRequestStore(db_session).save_snapshot(snapshot)
        assert exc_info.value.request_id == str(snapshot.id)


class TestGetSnapshot:

    async def test_missing_row(self, db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        db_session.execute.return_value = result
        assert await SqlRequestStore(db_session).get_snapshot(uuid4()) is None

    async def test_row_converted(self, db_session):
        expected = _snapshot()
        row = MagicMock()
        row.to_snapshot.return_value = expected
        result = MagicMock()
        result.scalar_one_or_none.return_value = row
        db_session.execute.return_value = result
        assert await SqlRequestStore(db_session).get_snapshot(expected.id) == expected


class TestWrites:

    async def test_add_comment_detaches_row(self, db_session):
        request_id, author_id = uuid4(), uuid4()
        comment = await SqlRequestStore(db_session).add_comment(request_id, author_id, "hello")

        assert isinstance(comment, Comment)
        assert comment.content == "hello"
        db_session.flush.assert_awaited_once()
        db_session.expunge.assert_called_once_with(comment)

    async def test_record_event_writes_audit_row(self, db_session):
        actor = Actor(id=uuid4(), role=UserRole.designer)
        event = TransitionEvent(
            request_id=uuid4(),
            from_status=RequestStatus.in_review,
            to_status=RequestStatus.completed,
            actor=actor,
            timestamp=datetime(2026, 1, 15, tzinfo=timezone.utc),
        )
        await SqlRequestStore(db_session).record_event("request.status_changed", event)

        entry = db_session.add.call_args.args[0]
        assert isinstance(entry, AuditLog)
        assert entry.action == "request.status_changed"
        assert entry.target_id == str(event.request_id)
        assert entry.performed_by_id == actor.id
        assert entry.details["from_status"] == "in_review"
        assert entry.details["to_status"] == "completed"
        assert entry.details["role"] == "designer"
