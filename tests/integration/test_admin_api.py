"""Integration tests for user administration, role changes and notifications."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from designdesk.auth import get_current_user
from designdesk.database import get_db
from designdesk.dependencies import get_notification_dispatch
from designdesk.main import app
from designdesk.models import AuditLog


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _user(role="requester", **kwargs):
    fields = dict(
        id=uuid4(),
        username=f"{role}.user",
        email=f"{role}@company.com",
        role=role,
        status="active",
        department=None,
        last_login=None,
        created_at=datetime.now(timezone.utc),
    )
    fields.update(kwargs)
    return SimpleNamespace(**fields)


def _result(value=None, scalar=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = scalar
    result.first.return_value = value
    result.scalars.return_value.all.return_value = []
    return result


@pytest.fixture
def db():
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def client_as(db, dispatcher):
    def _client(user):
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_db] = lambda: db
        app.dependency_overrides[get_notification_dispatch] = lambda: dispatcher
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestUpdateUser:

    def test_requires_admin(self, client_as):
        client = client_as(_user("designer"))
        resp = client.patch(f"/api/users/{uuid4()}", json={"action": "change_status", "status": "inactive"})
        assert resp.status_code == 403

    def test_admin_cannot_modify_self(self, client_as):
        admin = _user("admin")
        resp = client_as(admin).patch(
            f"/api/users/{admin.id}", json={"action": "change_role", "role": "designer"},
        )
        assert resp.status_code == 400

    def test_change_role(self, client_as, db, dispatcher):
        admin, target = _user("admin"), _user("requester")
        db.execute = AsyncMock(return_value=_result(target))

        resp = client_as(admin).patch(
            f"/api/users/{target.id}", json={"action": "change_role", "role": "designer"},
        )

        assert resp.status_code == 200
        assert resp.json()["role"] == "designer"
        audit = db.add.call_args.args[0]
        assert isinstance(audit, AuditLog)
        assert audit.action == "user.role_changed"
        assert audit.details == {"from_role": "requester", "to_role": "designer"}
        db.commit.assert_awaited()
        assert len(dispatcher.sent) == 1
        assert dispatcher.sent[0].recipient_id == target.id
        assert dispatcher.sent[0].title == "Role Changed"

    def test_same_role_rejected(self, client_as, db):
        admin, target = _user("admin"), _user("designer")
        db.execute = AsyncMock(return_value=_result(target))

        resp = client_as(admin).patch(
            f"/api/users/{target.id}", json={"action": "change_role", "role": "designer"},
        )

        assert resp.status_code == 400

    def test_deactivate(self, client_as, db, dispatcher):
        admin, target = _user("admin"), _user("designer")
        db.execute = AsyncMock(return_value=_result(target))

        resp = client_as(admin).patch(
            f"/api/users/{target.id}", json={"action": "change_status", "status": "inactive"},
        )

        assert resp.status_code == 200
        assert resp.json()["status"] == "inactive"
        assert db.add.call_args.args[0].action == "user.deactivated"
        assert dispatcher.sent[0].title == "Account Deactivated"

    def test_notify_failure_keeps_change(self, client_as, db, failing_dispatcher):
        admin, target = _user("admin"), _user("designer", status="inactive")
        db.execute = AsyncMock(return_value=_result(target))
        client = client_as(admin)
        app.dependency_overrides[get_notification_dispatch] = lambda: failing_dispatcher

        resp = client.patch(
            f"/api/users/{target.id}", json={"action": "change_status", "status": "active"},
        )

        assert resp.status_code == 200
        assert resp.json()["status"] == "active"
        db.rollback.assert_awaited_once()

    def test_unknown_user(self, client_as, db):
        db.execute = AsyncMock(return_value=_result(None))
        resp = client_as(_user("admin")).patch(
            f"/api/users/{uuid4()}", json={"action": "change_status", "status": "inactive"},
        )
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Role change requests
# ---------------------------------------------------------------------------


class TestRoleChangeRequests:

    def test_admins_cannot_request(self, client_as):
        resp = client_as(_user("admin")).post(
            "/api/role-change-requests", json={"requested_role": "designer"},
        )
        assert resp.status_code == 400

    def test_cannot_request_current_role(self, client_as):
        resp = client_as(_user("designer")).post(
            "/api/role-change-requests", json={"requested_role": "designer"},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "You already have this role"

    def test_admin_role_cannot_be_requested(self, client_as):
        resp = client_as(_user("requester")).post(
            "/api/role-change-requests", json={"requested_role": "admin"},
        )
        assert resp.status_code == 422

    def test_one_pending_request_per_user(self, client_as, db):
        db.execute = AsyncMock(return_value=_result((uuid4(),)))
        resp = client_as(_user("requester")).post(
            "/api/role-change-requests", json={"requested_role": "designer"},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "You already have a pending role change request"

    def test_review_requires_admin(self, client_as):
        resp = client_as(_user("requester")).patch(
            f"/api/role-change-requests/{uuid4()}", json={"action": "approve"},
        )
        assert resp.status_code == 403

    def test_already_reviewed(self, client_as, db):
        row = SimpleNamespace(id=uuid4(), status="approved")
        db.execute = AsyncMock(return_value=_result(row))
        resp = client_as(_user("admin")).patch(
            f"/api/role-change-requests/{row.id}", json={"action": "reject"},
        )
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Notifications / audit
# ---------------------------------------------------------------------------


class TestNotifications:

    def test_unread_count(self, client_as, db):
        db.execute = AsyncMock(return_value=_result(scalar=3))
        resp = client_as(_user("designer")).get("/api/notifications/unread-count")
        assert resp.status_code == 200
        assert resp.json() == {"unread_count": 3}

    def test_cannot_read_someone_elses_notification(self, client_as, db):
        row = SimpleNamespace(id=7, user_id=uuid4(), read_at=None)
        db.execute = AsyncMock(return_value=_result(row))
        resp = client_as(_user("designer")).post("/api/notifications/7/read")
        assert resp.status_code == 403

    def test_read_all(self, client_as, db):
        db.execute = AsyncMock(return_value=_result())
        resp = client_as(_user("designer")).post("/api/notifications/read-all")
        assert resp.status_code == 200
        assert resp.json() == {"unread_count": 0}
        db.commit.assert_awaited_once()


class TestAdminStats:

    def test_requires_admin(self, client_as):
        resp = client_as(_user("designer")).get("/api/admin/stats")
        assert resp.status_code == 403

    def test_counts_are_bucketed_by_workflow_state(self, client_as, db):
        users = MagicMock()
        users.all.return_value = [
            ("admin", "active", 1),
            ("designer", "active", 3),
            ("designer", "inactive", 1),
            ("requester", "active", 5),
        ]
        requests = MagicMock()
        requests.all.return_value = [
            ("draft", 1),
            ("submitted", 2),
            ("assigned", 1),
            ("in_design", 2),
            ("changes_requested", 1),
            ("ready_to_publish", 1),
            ("completed", 1),
            ("published", 3),
            ("archived", 2),
        ]
        db.execute = AsyncMock(side_effect=[
            users, requests, _result(scalar=2), _result(scalar=4), _result(scalar=6),
        ])

        resp = client_as(_user("admin")).get("/api/admin/stats")

        assert resp.status_code == 200
        body = resp.json()
        assert body["users"] == {
            "total": 10,
            "active": 9,
            "inactive": 1,
            "by_role": {"admin": 1, "designer": 4, "requester": 5},
            "recent_logins": 4,
            "new_this_month": 6,
        }
        assert body["requests"]["total"] == 14
        assert body["requests"]["pending"] == 3
        assert body["requests"]["in_progress"] == 3
        assert body["requests"]["completed"] == 4
        assert body["requests"]["by_status"]["in_review"] == 0
        assert body["pending_role_changes"] == 2

    def test_empty_database(self, client_as, db):
        results = [_result() for _ in range(5)]
        for result in results:
            result.all.return_value = []
        db.execute = AsyncMock(side_effect=results)

        resp = client_as(_user("admin")).get("/api/admin/stats")

        assert resp.status_code == 200
        assert resp.json()["requests"]["pending"] == 0
        assert resp.json()["users"]["total"] == 0


class TestAuditLogs:

    def test_requires_admin(self, client_as):
        resp = client_as(_user("requester")).get("/api/admin/audit-logs")
        assert resp.status_code == 403

    def test_empty_page(self, client_as, db):
        db.execute = AsyncMock(return_value=_result(scalar=0))
        resp = client_as(_user("admin")).get("/api/admin/audit-logs?target_type=user")
        assert resp.status_code == 200
        assert resp.json() == {"items": [], "total": 0, "page": 1, "per_page": 50}
