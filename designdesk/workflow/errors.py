"""Workflow error taxonomy.

Domain errors are returned inside `Deny` results by the validator; the HTTP
layer turns them into responses with `raise_http_exception`. Only
`ProgrammingError` is ever raised by the core.
"""

from fastapi import HTTPException, status


class WorkflowError(Exception):
    """Base class for request workflow errors."""

    def __init__(self, message: str, error_type: str = "workflow_error"):
        self.message = message
        self.error_type = error_type
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkflowError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.error_type == other.error_type
            and self.message == other.message
        )

    def __hash__(self) -> int:
        return hash((type(self), self.error_type, self.message))


class AccessDenied(WorkflowError):
    """Actor lacks ownership or assignment scope for the request."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, "access_denied")


class InvalidTransition(WorkflowError):
    """The (role, from, to) triple is not in the transition table."""

    def __init__(self, current_status: str, target_status: str):
        super().__init__(
            f"Cannot change status from {current_status} to {target_status}",
            "invalid_transition",
        )
        self.current_status = current_status
        self.target_status = target_status


class MissingPublishedLink(WorkflowError):
    """Publishing was attempted without a non-empty link."""

    def __init__(self):
        super().__init__(
            "Published link is required to mark as published",
            "missing_published_link",
        )


class DesignerRequired(WorkflowError):
    """Moving to `assigned` was attempted while no designer is set."""

    def __init__(self):
        super().__init__(
            "Assign a designer before moving the request to assigned",
            "designer_required",
        )


class RequestNotFound(WorkflowError):
    """Raised at the boundary when a request id does not resolve."""

    def __init__(self, request_id: str):
        super().__init__(f"Request '{request_id}' not found", "request_not_found")
        self.request_id = request_id


class StaleRequestError(WorkflowError):
    """The request changed between validation and write."""

    def __init__(self, request_id: str):
        super().__init__(
            f"Request '{request_id}' was modified concurrently, reload and retry",
            "stale_request",
        )
        self.request_id = request_id


class ProgrammingError(AssertionError):
    """Effects were applied to a command that did not pass validation."""


STATUS_MAP = {
    "access_denied": status.HTTP_403_FORBIDDEN,
    "invalid_transition": status.HTTP_403_FORBIDDEN,
    "missing_published_link": status.HTTP_400_BAD_REQUEST,
    "designer_required": status.HTTP_400_BAD_REQUEST,
    "request_not_found": status.HTTP_404_NOT_FOUND,
    "stale_request": status.HTTP_409_CONFLICT,
    "workflow_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_http_exception(error: WorkflowError) -> None:
    """Convert a WorkflowError to HTTPException."""
    code = STATUS_MAP.get(error.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR)
    raise HTTPException(
        status_code=code,
        detail={
            "type": f"/errors/{error.error_type}",
            "title": error.error_type.replace("_", " ").title(),
            "status": code,
            "detail": error.message,
        },
    )
