"""Tests for transition effects: field mutations and notification intents."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from designdesk.workflow.commands import AddComment, AssignDesigner, ChangeStatus
from designdesk.workflow.effects import NotificationKind, apply, request_link
from designdesk.workflow.errors import ProgrammingError
from designdesk.workflow.policy import RequestStatus

S = RequestStatus
FROZEN_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class TestStatusChangeFields:

    def test_status_is_updated(self, make_request, designer):
        request = make_request(S.assigned, designer_id=designer.id)
        result = apply(request, designer, ChangeStatus(S.in_design), now=FROZEN_NOW)
        assert result.request.status == S.in_design
        assert result.request.version == request.version

    def test_input_snapshot_is_not_mutated(self, make_request, designer):
        request = make_request(S.assigned, designer_id=designer.id)
        apply(request, designer, ChangeStatus(S.in_design), now=FROZEN_NOW)
        assert request.status == S.assigned

    def test_publish_sets_link_and_timestamp(self, make_request, requester, designer):
        request = make_request(S.ready_to_publish, designer_id=designer.id)
        result = apply(
            request, requester,
            ChangeStatus(S.published, published_link="  https://x.com/a  "),
            now=FROZEN_NOW,
        )
        assert result.request.status == S.published
        assert result.request.published_link == "https://x.com/a"
        assert result.request.published_at == FROZEN_NOW
        assert result.event.extra_fields["published_link"] == "https://x.com/a"

    def test_publish_without_link_is_a_programming_error(self, make_request, admin):
        request = make_request(S.ready_to_publish)
        with pytest.raises(ProgrammingError):
            apply(request, admin, ChangeStatus(S.published), now=FROZEN_NOW)

    def test_assigned_without_designer_is_a_programming_error(self, make_request, admin):
        with pytest.raises(ProgrammingError):
            apply(make_request(S.submitted), admin, ChangeStatus(S.assigned), now=FROZEN_NOW)

    def test_other_transitions_keep_published_fields(self, make_request, admin):
        request = make_request(S.published, published_link="https://x.com/a", published_at=FROZEN_NOW)
        result = apply(request, admin, ChangeStatus(S.archived), now=FROZEN_NOW)
        assert result.request.published_link == "https://x.com/a"
        assert result.request.published_at == FROZEN_NOW

    def test_event_records_transition(self, make_request, admin):
        request = make_request(S.draft)
        result = apply(request, admin, ChangeStatus(S.submitted), now=FROZEN_NOW)
        assert result.event.from_status == S.draft
        assert result.event.to_status == S.submitted
        assert result.event.actor == admin
        assert result.event.timestamp == FROZEN_NOW


class TestDesignerStatusNotifications:

    def test_requester_is_notified(self, make_request, designer, requester):
        request = make_request(S.assigned, designer_id=designer.id)
        result = apply(request, designer, ChangeStatus(S.in_design), now=FROZEN_NOW)

        assert len(result.intents) == 1
        intent = result.intents[0]
        assert intent.recipient_id == requester.id
        assert intent.kind == NotificationKind.status_change
        assert intent.title == "Design In Design"
        assert intent.message == 'Status updated to In Design for "Q1 Campaign Banner"'
        assert intent.from_user_id == designer.id
        assert intent.request_id == request.id
        assert intent.link == request_link(request.id)

    def test_in_review_notifies_every_admin(self, make_request, designer, requester):
        admin_ids = [uuid4(), uuid4(), uuid4()]
        request = make_request(S.in_design, designer_id=designer.id)
        result = apply(request, designer, ChangeStatus(S.in_review), admin_ids=admin_ids, now=FROZEN_NOW)

        recipients = [i.recipient_id for i in result.intents]
        assert recipients == [requester.id, *admin_ids]
        admin_intents = result.intents[1:]
        assert all(i.title == "Design Ready for Review" for i in admin_intents)
        assert all("ready for your approval" in i.message for i in admin_intents)

    def test_in_review_with_no_admins(self, make_request, designer):
        request = make_request(S.in_design, designer_id=designer.id)
        result = apply(request, designer, ChangeStatus(S.in_review), now=FROZEN_NOW)
        assert len(result.intents) == 1

    def test_requester_who_is_the_actor_is_skipped(self, make_request, designer):
        admin_ids = [uuid4()]
        request = make_request(S.in_design, requester_id=designer.id, designer_id=designer.id)
        result = apply(request, designer, ChangeStatus(S.in_review), admin_ids=admin_ids, now=FROZEN_NOW)
        assert [i.recipient_id for i in result.intents] == admin_ids

    def test_ready_to_publish_message(self, make_request, designer):
        request = make_request(S.in_review, designer_id=designer.id)
        result = apply(request, designer, ChangeStatus(S.ready_to_publish), now=FROZEN_NOW)
        assert result.intents[0].title == "Design Ready to Publish"
        assert "is ready to publish! You can now publish it." in result.intents[0].message

    def test_completed_title(self, make_request, designer, requester):
        request = make_request(S.in_review, designer_id=designer.id)
        result = apply(request, designer, ChangeStatus(S.completed), now=FROZEN_NOW)
        assert result.request.status == S.completed
        assert len(result.intents) == 1
        assert result.intents[0].recipient_id == requester.id
        assert result.intents[0].kind == NotificationKind.status_change
        assert "Completed" in result.intents[0].title


class TestRequesterStatusNotifications:

    @pytest.mark.parametrize(
        "current,target,title",
        [
            (S.in_review, S.ready_to_publish, "Design Accepted! 🎉"),
            (S.in_review, S.changes_requested, "Changes Requested"),
            (S.ready_to_publish, S.changes_requested, "Changes Requested"),
            (S.draft, S.submitted, "Request Submitted"),
        ],
    )
    def test_designer_is_notified(self, current, target, title, make_request, requester, designer):
        request = make_request(current, designer_id=designer.id)
        result = apply(request, requester, ChangeStatus(target), now=FROZEN_NOW)
        assert len(result.intents) == 1
        assert result.intents[0].recipient_id == designer.id
        assert result.intents[0].title == title

    def test_publish_notifies_designer(self, make_request, requester, designer):
        request = make_request(S.ready_to_publish, designer_id=designer.id)
        result = apply(
            request, requester,
            ChangeStatus(S.published, published_link="https://x.com/a"),
            now=FROZEN_NOW,
        )
        assert result.request.published_link == "https://x.com/a"
        assert result.request.published_at is not None
        assert len(result.intents) == 1
        assert result.intents[0].recipient_id == designer.id
        assert "Published! 🎉" in result.intents[0].title

    def test_no_designer_no_notification(self, make_request, requester):
        result = apply(make_request(S.draft), requester, ChangeStatus(S.submitted), now=FROZEN_NOW)
        assert result.intents == ()


class TestAdminStatusNotifications:

    def test_admin_changes_notify_nobody(self, make_request, admin, designer):
        request = make_request(S.in_design, designer_id=designer.id)
        result = apply(request, admin, ChangeStatus(S.in_review), admin_ids=[uuid4()], now=FROZEN_NOW)
        assert result.intents == ()


class TestAssignment:

    def test_self_assignment_promotes_and_notifies(self, make_request, designer, requester):
        request = make_request(S.submitted)
        result = apply(
            request, designer, AssignDesigner(designer.id),
            designer_name="sarah.designer", now=FROZEN_NOW,
        )
        assert result.request.designer_id == designer.id
        assert result.request.status == S.assigned
        assert len(result.intents) == 1
        intent = result.intents[0]
        assert intent.recipient_id == requester.id
        assert intent.kind == NotificationKind.assignment
        assert intent.message == 'sarah.designer has been assigned to your request "Q1 Campaign Banner"'

    def test_admin_assignment_outside_submitted_keeps_status(self, make_request, admin, designer):
        request = make_request(S.draft)
        result = apply(request, admin, AssignDesigner(designer.id), now=FROZEN_NOW)
        assert result.request.status == S.draft
        assert result.request.designer_id == designer.id
        assert result.intents[0].message.startswith("A designer has been assigned")

    def test_reassignment_does_not_notify(self, make_request, admin, designer, other_designer):
        request = make_request(S.in_design, designer_id=other_designer.id)
        result = apply(request, admin, AssignDesigner(designer.id), now=FROZEN_NOW)
        assert result.request.designer_id == designer.id
        assert result.intents == ()
        assert result.event.extra_fields["previous_designer_id"] == str(other_designer.id)


class TestComments:

    def test_requester_feedback_goes_to_designer(self, make_request, requester, designer):
        request = make_request(S.in_design, designer_id=designer.id)
        result = apply(request, requester, AddComment("Please use the new colors"))
        assert len(result.intents) == 1
        assert result.intents[0].recipient_id == designer.id
        assert result.intents[0].kind == NotificationKind.feedback
        assert result.event is None
        assert result.request == request

    def test_requester_comment_without_designer_is_silent(self, make_request, requester):
        result = apply(make_request(S.draft), requester, AddComment("note to self"))
        assert result.intents == ()

    def test_designer_comment_goes_to_requester(self, make_request, requester, designer):
        request = make_request(S.in_design, designer_id=designer.id)
        result = apply(request, designer, AddComment("First draft is up"))
        assert result.intents[0].recipient_id == requester.id
        assert result.intents[0].kind == NotificationKind.comment

    def test_admin_comment_goes_to_requester(self, make_request, requester, admin):
        result = apply(make_request(S.submitted), admin, AddComment("Queued"))
        assert result.intents[0].recipient_id == requester.id

    def test_blank_comment_is_a_programming_error(self, make_request, requester):
        with pytest.raises(ProgrammingError):
            apply(make_request(S.draft), requester, AddComment("   "))


def test_unknown_command_is_a_programming_error(make_request, admin):
    with pytest.raises(ProgrammingError):
        apply(make_request(), admin, object())
