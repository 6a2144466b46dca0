"""Value types passed into the workflow core.

A `Command` is exactly one of the operations an actor can perform on a
request; the validator and effects dispatch on its type.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union
from uuid import UUID

from designdesk.workflow.policy import Priority, RequestStatus, UserRole


@dataclass(frozen=True, slots=True)
class Actor:
    """Who is attempting the operation."""

    id: UUID
    role: UserRole
    username: str = ""


@dataclass(frozen=True, slots=True)
class RequestSnapshot:
    """The workflow-relevant state of one design request.

    Loaded fresh from the store for every call; the core never keeps it.
    `version` is the optimistic-concurrency token checked on write.
    """

    id: UUID
    status: RequestStatus
    requester_id: UUID
    designer_id: UUID | None = None
    priority: Priority = Priority.medium
    published_link: str | None = None
    published_at: datetime | None = None
    name: str = ""
    code: str = ""
    version: int = 1


@dataclass(frozen=True, slots=True)
class ChangeStatus:
    target: RequestStatus
    published_link: str | None = None


@dataclass(frozen=True, slots=True)
class AssignDesigner:
    designer_id: UUID


@dataclass(frozen=True, slots=True)
class AddComment:
    content: str


Command = Union[ChangeStatus, AssignDesigner, AddComment]
