"""Transition validator — decides whether an actor may run a command.

Checks run in a fixed order and the first failure wins:

1. scope: a requester acts only on their own requests, a designer only on
   requests assigned to them (self-assignment has its own rule);
2. table: the target status must be listed for (role, current status);
3. preconditions: moving to `published` needs a non-empty link, and moving
   to `assigned` needs a designer already on the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from designdesk.workflow.commands import (
    Actor,
    AddComment,
    AssignDesigner,
    ChangeStatus,
    Command,
    RequestSnapshot,
)
from designdesk.workflow.errors import (
    AccessDenied,
    DesignerRequired,
    InvalidTransition,
    MissingPublishedLink,
    WorkflowError,
)
from designdesk.workflow.policy import (
    RequestStatus,
    UserRole,
    allowed_transitions,
)


@dataclass(frozen=True, slots=True)
class Allow:
    allowed: bool = True


@dataclass(frozen=True, slots=True)
class Deny:
    reason: WorkflowError
    allowed: bool = False


Decision = Union[Allow, Deny]

ALLOW = Allow()


def _value(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


def has_published_link(link: str | None) -> bool:
    return bool(link and link.strip())


def check_scope(actor: Actor, request: RequestSnapshot, action: str = "change status of") -> WorkflowError | None:
    """Return AccessDenied if the actor may not touch this request at all."""
    if actor.role == UserRole.requester and request.requester_id != actor.id:
        return AccessDenied()
    if actor.role == UserRole.designer and request.designer_id != actor.id:
        return AccessDenied(f"You can only {action} requests assigned to you")
    return None


def _validate_status_change(
    actor: Actor, request: RequestSnapshot, command: ChangeStatus
) -> Decision:
    denied = check_scope(actor, request)
    if denied is not None:
        return Deny(denied)

    if command.target not in allowed_transitions(actor.role, request.status):
        return Deny(InvalidTransition(_value(request.status), _value(command.target)))

    if command.target == RequestStatus.published and not has_published_link(command.published_link):
        return Deny(MissingPublishedLink())

    if command.target == RequestStatus.assigned and request.designer_id is None:
        return Deny(DesignerRequired())

    return ALLOW


def _validate_assignment(
    actor: Actor, request: RequestSnapshot, command: AssignDesigner
) -> Decision:
    if actor.role == UserRole.admin:
        return ALLOW

    if actor.role == UserRole.designer:
        # Self-assignment only, and only onto an unclaimed submitted request.
        if (
            command.designer_id == actor.id
            and request.designer_id is None
            and request.status == RequestStatus.submitted
        ):
            return ALLOW
        return Deny(AccessDenied("You can only assign yourself to unassigned submitted requests"))

    return Deny(AccessDenied("You cannot assign a designer"))


def _validate_comment(
    actor: Actor, request: RequestSnapshot, command: AddComment
) -> Decision:
    denied = check_scope(actor, request, action="comment on")
    if denied is not None:
        return Deny(denied)
    return ALLOW


def validate(actor: Actor, request: RequestSnapshot, command: Command) -> Decision:
    """Decide whether `actor` may run `command` against `request`."""
    if isinstance(command, ChangeStatus):
        return _validate_status_change(actor, request, command)
    if isinstance(command, AssignDesigner):
        return _validate_assignment(actor, request, command)
    if isinstance(command, AddComment):
        return _validate_comment(actor, request, command)
    raise TypeError(f"Unknown workflow command: {command!r}")
