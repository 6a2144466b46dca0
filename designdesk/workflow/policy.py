"""Request status workflow — per-role transition table.

The table below is the single source of truth for who may move a design
request from which status to which. Nothing is implied by the order of the
statuses; a transition is legal only if it is listed.

    draft → submitted → assigned → in_design → in_review
    in_review → changes_requested | ready_to_publish | completed
    changes_requested → in_design
    ready_to_publish | completed → published
    (admin) any → archived, archived → draft
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Mapping


class RequestStatus(str, enum.Enum):
    draft = "draft"
    submitted = "submitted"
    assigned = "assigned"
    in_design = "in_design"
    in_review = "in_review"
    changes_requested = "changes_requested"
    ready_to_publish = "ready_to_publish"
    completed = "completed"
    published = "published"
    archived = "archived"


class UserRole(str, enum.Enum):
    admin = "admin"
    designer = "designer"
    requester = "requester"


class Priority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    campaign_critical = "campaign_critical"


# Statuses a request may be created in.
INITIAL_STATUSES: frozenset[RequestStatus] = frozenset(
    {RequestStatus.draft, RequestStatus.submitted}
)

# Statuses in which no designer has been assigned yet.
UNASSIGNED_STATUSES: frozenset[RequestStatus] = frozenset(
    {RequestStatus.draft, RequestStatus.submitted}
)

STATUS_LABELS: Mapping[RequestStatus, str] = MappingProxyType({
    RequestStatus.draft: "Draft",
    RequestStatus.submitted: "Submitted",
    RequestStatus.assigned: "Assigned",
    RequestStatus.in_design: "In Design",
    RequestStatus.in_review: "In Review",
    RequestStatus.changes_requested: "Changes Requested",
    RequestStatus.ready_to_publish: "Ready to Publish",
    RequestStatus.completed: "Completed",
    RequestStatus.published: "Published",
    RequestStatus.archived: "Archived",
})


def _freeze(
    table: dict[str, dict[str, list[str]]],
) -> Mapping[UserRole, Mapping[RequestStatus, frozenset[RequestStatus]]]:
    return MappingProxyType({
        UserRole(role): MappingProxyType({
            RequestStatus(current): frozenset(RequestStatus(t) for t in targets)
            for current, targets in row.items()
        })
        for role, row in table.items()
    })


TRANSITION_POLICY = _freeze({
    "admin": {
        "draft": ["submitted", "archived"],
        "submitted": ["assigned", "archived"],
        "assigned": ["in_design", "submitted", "archived"],
        "in_design": ["in_review", "assigned", "archived"],
        "in_review": [
            "changes_requested", "ready_to_publish", "completed", "in_design", "archived",
        ],
        "changes_requested": ["in_design", "archived"],
        "ready_to_publish": ["published", "in_review", "archived"],
        "completed": ["published", "in_review", "archived"],
        "published": ["archived"],
        "archived": ["draft"],
    },
    "designer": {
        "assigned": ["in_design"],
        "in_design": ["in_review"],
        # Designer may hand over for acceptance, declare completion, or loop back.
        "in_review": ["ready_to_publish", "completed", "changes_requested"],
        "changes_requested": ["in_design"],
    },
    "requester": {
        "draft": ["submitted"],
        "in_review": ["ready_to_publish", "changes_requested"],
        "ready_to_publish": ["published", "changes_requested"],
        "completed": ["published"],
    },
})


# Dashboard buckets. Draft and archived requests fall outside all three.
STATUS_BUCKETS: Mapping[str, frozenset[RequestStatus]] = MappingProxyType({
    "pending": frozenset({RequestStatus.submitted, RequestStatus.assigned}),
    "in_progress": frozenset({
        RequestStatus.in_design,
        RequestStatus.in_review,
        RequestStatus.changes_requested,
    }),
    "completed": frozenset({RequestStatus.completed, RequestStatus.published}),
})


def _coerce_role(role: UserRole | str) -> UserRole | None:
    try:
        return UserRole(role)
    except ValueError:
        return None


def _coerce_status(value: RequestStatus | str) -> RequestStatus | None:
    try:
        return RequestStatus(value)
    except ValueError:
        return None


def allowed_transitions(
    role: UserRole | str, current: RequestStatus | str
) -> frozenset[RequestStatus]:
    """Statuses `role` may move a request to from `current` (empty if none)."""
    role_ = _coerce_role(role)
    current_ = _coerce_status(current)
    if role_ is None or current_ is None:
        return frozenset()
    return TRANSITION_POLICY[role_].get(current_, frozenset())


def can_transition(
    role: UserRole | str,
    current: RequestStatus | str,
    target: RequestStatus | str,
) -> bool:
    """Check whether `role` may move a request from `current` to `target`."""
    target_ = _coerce_status(target)
    if target_ is None:
        return False
    return target_ in allowed_transitions(role, current)


def status_label(value: RequestStatus | str) -> str:
    """Human-readable label used in notification titles."""
    status_ = _coerce_status(value)
    if status_ is None:
        return str(value)
    return STATUS_LABELS[status_]
