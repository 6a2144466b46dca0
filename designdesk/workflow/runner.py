"""Workflow runner: the thin shell around validate/apply.

Every command runs in two phases:

1. commit: load a fresh snapshot, validate, apply, write the new state
   (version-checked) plus its audit entry, and commit;
2. notify: hand the intents to the notification dispatcher. This phase is
   best-effort; a failure is logged and the committed state stands.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Union
from uuid import UUID

from designdesk.logging_config import get_logger
from designdesk.services.notification_service import NotificationDispatch, dispatch_best_effort
from designdesk.store import RequestStore
from designdesk.workflow.commands import (
    Actor,
    AddComment,
    AssignDesigner,
    ChangeStatus,
    Command,
)
from designdesk.workflow.effects import TransitionResult, apply
from designdesk.workflow.errors import RequestNotFound, StaleRequestError
from designdesk.workflow.policy import RequestStatus, UserRole
from designdesk.workflow.validator import Deny, validate

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Committed:
    """A command that passed validation and was persisted."""

    result: TransitionResult
    record: Any = None  # row created by the command (comments)
    notified: bool = True


Outcome = Union[Committed, Deny]


def _audit_action(command: Command) -> str | None:
    if isinstance(command, ChangeStatus):
        return "request.status_changed"
    if isinstance(command, AssignDesigner):
        return "request.designer_assigned"
    return None


class WorkflowRunner:
    """Runs workflow commands against a RequestStore."""

    def __init__(
        self,
        store: RequestStore,
        dispatcher: NotificationDispatch,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.clock = clock

    async def execute(self, request_id: UUID, actor: Actor, command: Command) -> Outcome:
        """Validate and run `command`; domain failures come back as `Deny`."""
        snapshot = await self.store.get_snapshot(request_id)
        if snapshot is None:
            return Deny(RequestNotFound(str(request_id)))

        decision = validate(actor, snapshot, command)
        if isinstance(decision, Deny):
            logger.info(
                "workflow_command_denied",
                request_id=str(request_id),
                command=type(command).__name__,
                reason=decision.reason.error_type,
            )
            return decision

        admin_ids: list[UUID] = []
        if (
            isinstance(command, ChangeStatus)
            and actor.role == UserRole.designer
            and command.target == RequestStatus.in_review
        ):
            admin_ids = await self.store.list_admin_ids()

        designer_name = None
        if isinstance(command, AssignDesigner):
            designer_name = await self.store.get_username(command.designer_id)

        result = apply(
            snapshot,
            actor,
            command,
            admin_ids=admin_ids,
            designer_name=designer_name,
            now=self.clock() if self.clock else None,
        )

        # Phase 1: commit state.
        record = None
        try:
            if isinstance(command, AddComment):
                record = await self.store.add_comment(snapshot.id, actor.id, command.content.strip())
            else:
                saved = await self.store.save_snapshot(result.request)
                result = TransitionResult(request=saved, intents=result.intents, event=result.event)
                await self.store.record_event(_audit_action(command), result.event)
            await self.store.commit()
        except StaleRequestError as e:
            await self.store.rollback()
            return Deny(e)

        if result.event is not None:
            logger.info(
                "request_workflow_committed",
                request_id=str(snapshot.id),
                command=type(command).__name__,
                from_status=result.event.from_status.value,
                to_status=result.event.to_status.value,
                actor_id=str(actor.id),
            )

        # Phase 2: best-effort notify.
        notified = await self.notify(result)
        return Committed(result=result, record=record, notified=notified)

    async def notify(self, result: TransitionResult) -> bool:
        """Dispatch intents; never raises. Returns False if dispatch failed."""
        return await dispatch_best_effort(
            self.dispatcher,
            result.intents,
            rollback=self.store.rollback,
            request_id=str(result.request.id),
        )
