"""Pydantic v2 request/response schemas for all endpoints."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from designdesk.workflow.policy import Priority, RequestStatus, UserRole


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str


class UserResponse(UserSummary):
    role: str
    status: str
    department: str | None = None
    last_login: datetime | None = None
    created_at: datetime


class UserUpdateRequest(BaseModel):
    action: Literal["change_role", "change_status"]
    role: UserRole | None = None
    status: Literal["active", "inactive"] | None = None


# ---------------------------------------------------------------------------
# Design requests
# ---------------------------------------------------------------------------


class RequestCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=300)
    description: str | None = None
    reference_link: str | None = None
    priority: Priority = Priority.medium
    due_date: datetime | None = None
    status: Literal["draft", "submitted"] = "draft"


class RequestUpdate(BaseModel):
    """Descriptive fields only; status and designer go through the workflow."""

    name: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    reference_link: str | None = None
    priority: Priority | None = None
    due_date: datetime | None = None


class StatusChangeRequest(BaseModel):
    status: RequestStatus
    published_link: str | None = None


class AssignDesignerRequest(BaseModel):
    designer_id: UUID


class RequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    description: str | None = None
    reference_link: str | None = None
    priority: str
    status: str
    requester_id: UUID
    designer_id: UUID | None = None
    due_date: datetime | None = None
    published_link: str | None = None
    published_at: datetime | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class RequestListResponse(BaseModel):
    items: list[RequestResponse]
    total: int
    user_role: str


class WorkflowStateResponse(BaseModel):
    """Workflow fields of a request after a committed status/designer change."""

    id: UUID
    code: str
    status: str
    previous_status: str
    designer_id: UUID | None = None
    published_link: str | None = None
    published_at: datetime | None = None
    version: int
    notifications: int = 0
    notified: bool = True


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)

    @field_validator("content")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment content is required")
        return v


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    request_id: UUID
    author_id: UUID
    content: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class NotificationResponse(BaseModel):
    id: int
    user_id: UUID
    from_user_id: UUID | None = None
    request_id: UUID | None = None
    notification_type: str
    title: str
    body: str
    link: str | None = None
    read: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    total: int
    unread_count: int


class NotificationUnreadCountResponse(BaseModel):
    unread_count: int


# ---------------------------------------------------------------------------
# Role change requests
# ---------------------------------------------------------------------------


class RoleChangeCreate(BaseModel):
    requested_role: Literal["designer", "requester"]
    reason: str | None = Field(default=None, max_length=2000)


class RoleChangeReview(BaseModel):
    action: Literal["approve", "reject"]
    review_note: str | None = Field(default=None, max_length=2000)


class RoleChangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    from_role: str
    requested_role: str
    reason: str | None = None
    status: str
    reviewed_by_id: UUID | None = None
    review_note: str | None = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: str
    target_type: str
    target_id: str
    details: dict = Field(default_factory=dict)
    performed_by_id: UUID | None = None
    created_at: datetime


class PaginatedAuditLogs(BaseModel):
    items: list[AuditLogResponse]
    total: int
    page: int
    per_page: int


# ---------------------------------------------------------------------------
# Admin dashboard
# ---------------------------------------------------------------------------


class UserStats(BaseModel):
    total: int
    active: int
    inactive: int
    by_role: dict[str, int]
    recent_logins: int
    new_this_month: int


class RequestStats(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    by_status: dict[str, int]


class AdminStatsResponse(BaseModel):
    users: UserStats
    requests: RequestStats
    pending_role_changes: int
