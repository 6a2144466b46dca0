"""Transition effects — the new request state plus who to notify.

`apply` is pure: it never reads or writes storage and performs no business
rule checks. It must only be called with a command that `validate` has
already allowed for the same actor and snapshot; a malformed command here
is a `ProgrammingError`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import UUID

from designdesk.workflow.commands import (
    Actor,
    AddComment,
    AssignDesigner,
    ChangeStatus,
    Command,
    RequestSnapshot,
)
from designdesk.workflow.errors import ProgrammingError
from designdesk.workflow.policy import RequestStatus, UserRole, status_label
from designdesk.workflow.validator import has_published_link


class NotificationKind(str, enum.Enum):
    comment = "comment"
    feedback = "feedback"
    status_change = "status_change"
    assignment = "assignment"


@dataclass(frozen=True, slots=True)
class NotificationIntent:
    """An instruction to notify one user."""

    recipient_id: UUID
    kind: NotificationKind
    title: str
    message: str
    request_id: UUID | None = None
    from_user_id: UUID | None = None
    link: str | None = None


@dataclass(frozen=True, slots=True)
class TransitionEvent:
    """What happened, for the audit trail. Not retained by the core."""

    request_id: UUID
    from_status: RequestStatus
    to_status: RequestStatus
    actor: Actor
    timestamp: datetime
    extra_fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TransitionResult:
    request: RequestSnapshot
    intents: tuple[NotificationIntent, ...] = ()
    event: TransitionEvent | None = None


def request_link(request_id: UUID) -> str:
    return f"/dashboard/requests/{request_id}"


def _intent(
    request: RequestSnapshot,
    actor: Actor,
    recipient_id: UUID,
    kind: NotificationKind,
    title: str,
    message: str,
) -> NotificationIntent:
    return NotificationIntent(
        recipient_id=recipient_id,
        kind=kind,
        title=title,
        message=message,
        request_id=request.id,
        from_user_id=actor.id,
        link=request_link(request.id),
    )


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------


def _designer_status_intents(
    request: RequestSnapshot,
    actor: Actor,
    target: RequestStatus,
    admin_ids: Iterable[UUID],
) -> list[NotificationIntent]:
    intents: list[NotificationIntent] = []
    label = status_label(target)

    if request.requester_id != actor.id:
        if target == RequestStatus.ready_to_publish:
            message = (
                f'Your design request "{request.name}" is ready to publish! '
                "You can now publish it."
            )
        else:
            message = f'Status updated to {label} for "{request.name}"'
        intents.append(_intent(
            request, actor, request.requester_id,
            NotificationKind.status_change, f"Design {label}", message,
        ))

    if target == RequestStatus.in_review:
        for admin_id in admin_ids:
            intents.append(_intent(
                request, actor, admin_id,
                NotificationKind.status_change,
                "Design Ready for Review",
                f'Design request "{request.name}" is now in review and is ready for your approval.',
            ))

    return intents


def _requester_status_intents(
    request: RequestSnapshot,
    actor: Actor,
    target: RequestStatus,
) -> list[NotificationIntent]:
    if request.designer_id is None or request.designer_id == actor.id:
        return []

    who = actor.username or "The requester"
    if target == RequestStatus.ready_to_publish:
        title = "Design Accepted! 🎉"
        message = f'{who} accepted the design for "{request.name}" - ready to publish!'
    elif target == RequestStatus.published:
        title = "Design Published! 🎉"
        message = f'"{request.name}" has been published by {who}!'
    elif target == RequestStatus.changes_requested:
        title = "Changes Requested"
        message = f'{who} requested changes for "{request.name}". Please review the feedback.'
    else:
        label = status_label(target)
        title = f"Request {label}"
        message = f'Status updated to {label} for "{request.name}"'

    return [_intent(
        request, actor, request.designer_id,
        NotificationKind.status_change, title, message,
    )]


def _apply_status_change(
    request: RequestSnapshot,
    actor: Actor,
    command: ChangeStatus,
    admin_ids: Iterable[UUID],
    now: datetime,
) -> TransitionResult:
    target = RequestStatus(command.target)
    extra: dict[str, Any] = {}
    updated = replace(request, status=target)

    if target == RequestStatus.published:
        if not has_published_link(command.published_link):
            raise ProgrammingError(
                "apply() called for 'published' without a link; validate() must run first"
            )
        link = command.published_link.strip()
        updated = replace(updated, published_link=link, published_at=now)
        extra = {"published_link": link, "published_at": now.isoformat()}

    if target == RequestStatus.assigned and request.designer_id is None:
        raise ProgrammingError(
            "apply() called for 'assigned' without a designer; validate() must run first"
        )

    if actor.role == UserRole.designer:
        intents = _designer_status_intents(request, actor, target, admin_ids)
    elif actor.role == UserRole.requester:
        intents = _requester_status_intents(request, actor, target)
    else:
        intents = []

    event = TransitionEvent(
        request_id=request.id,
        from_status=request.status,
        to_status=target,
        actor=actor,
        timestamp=now,
        extra_fields=extra,
    )
    return TransitionResult(request=updated, intents=tuple(intents), event=event)


# ---------------------------------------------------------------------------
# Designer assignment
# ---------------------------------------------------------------------------


def _apply_assignment(
    request: RequestSnapshot,
    actor: Actor,
    command: AssignDesigner,
    designer_name: str | None,
    now: datetime,
) -> TransitionResult:
    if command.designer_id is None:
        raise ProgrammingError("apply() called with an empty designer id")

    updated = replace(request, designer_id=command.designer_id)
    # Assigning onto a submitted request promotes it; no separate transition.
    if request.status == RequestStatus.submitted:
        updated = replace(updated, status=RequestStatus.assigned)

    intents: list[NotificationIntent] = []
    if request.designer_id is None:
        intents.append(_intent(
            request, actor, request.requester_id,
            NotificationKind.assignment,
            "Designer Assigned 🎨",
            f'{designer_name or "A designer"} has been assigned to your request "{request.name}"',
        ))

    event = TransitionEvent(
        request_id=request.id,
        from_status=request.status,
        to_status=updated.status,
        actor=actor,
        timestamp=now,
        extra_fields={
            "previous_designer_id": str(request.designer_id) if request.designer_id else None,
            "designer_id": str(command.designer_id),
        },
    )
    return TransitionResult(request=updated, intents=tuple(intents), event=event)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def _apply_comment(
    request: RequestSnapshot,
    actor: Actor,
    command: AddComment,
) -> TransitionResult:
    if not command.content or not command.content.strip():
        raise ProgrammingError("apply() called with an empty comment")

    who = actor.username or "Someone"
    intents: list[NotificationIntent] = []

    if actor.role == UserRole.requester:
        # No designer yet: nobody to tell.
        if request.designer_id is not None and request.designer_id != actor.id:
            intents.append(_intent(
                request, actor, request.designer_id,
                NotificationKind.feedback,
                "New Feedback 💬",
                f'{who} left feedback on "{request.name}"',
            ))
    elif request.requester_id != actor.id:
        intents.append(_intent(
            request, actor, request.requester_id,
            NotificationKind.comment,
            "New Comment 💬",
            f'{who} commented on "{request.name}"',
        ))

    return TransitionResult(request=request, intents=tuple(intents))


def apply(
    request: RequestSnapshot,
    actor: Actor,
    command: Command,
    *,
    admin_ids: Iterable[UUID] = (),
    designer_name: str | None = None,
    now: datetime | None = None,
) -> TransitionResult:
    """Compute the updated request and notification intents for `command`.

    Args:
        request: Snapshot the command was validated against
        actor: Who is acting
        command: A command already allowed by `validate`
        admin_ids: Every current admin, notified when a designer submits for review
        designer_name: Display name of the designer being assigned
        now: Clock override, defaults to the current UTC time
    """
    now = now or datetime.now(timezone.utc)
    if isinstance(command, ChangeStatus):
        return _apply_status_change(request, actor, command, admin_ids, now)
    if isinstance(command, AssignDesigner):
        return _apply_assignment(request, actor, command, designer_name, now)
    if isinstance(command, AddComment):
        return _apply_comment(request, actor, command)
    raise ProgrammingError(f"Unknown workflow command: {command!r}")
