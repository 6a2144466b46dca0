"""Design request endpoints — create, list, edit, and drive the status workflow."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.auth import actor_for, get_current_user, require_admin
from designdesk.config import get_settings
from designdesk.database import get_db
from designdesk.dependencies import get_workflow_runner
from designdesk.logging_config import get_logger
from designdesk.models import DesignRequest, User
from designdesk.schemas import (
    AssignDesignerRequest,
    RequestCreate,
    RequestListResponse,
    RequestResponse,
    RequestUpdate,
    StatusChangeRequest,
    WorkflowStateResponse,
)
from designdesk.services.audit_service import record_audit
from designdesk.services.request_codes import RequestCodeConflict, add_with_fresh_code
from designdesk.workflow.commands import AssignDesigner, ChangeStatus
from designdesk.workflow.errors import RequestNotFound, raise_http_exception
from designdesk.workflow.policy import RequestStatus, UserRole
from designdesk.workflow.runner import Committed, WorkflowRunner
from designdesk.workflow.validator import Deny

logger = get_logger(__name__)
router = APIRouter(prefix="/api/requests", tags=["requests"])


async def _get_request(db: AsyncSession, request_id: UUID) -> DesignRequest:
    result = await db.execute(
        select(DesignRequest).where(DesignRequest.id == request_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise_http_exception(RequestNotFound(str(request_id)))
    return row


def _workflow_response(outcome: Committed) -> WorkflowStateResponse:
    snapshot = outcome.result.request
    event = outcome.result.event
    return WorkflowStateResponse(
        id=snapshot.id,
        code=snapshot.code,
        status=snapshot.status.value,
        previous_status=event.from_status.value,
        designer_id=snapshot.designer_id,
        published_link=snapshot.published_link,
        published_at=snapshot.published_at,
        version=snapshot.version,
        notifications=len(outcome.result.intents),
        notified=outcome.notified,
    )


@router.post("", response_model=RequestResponse, status_code=201)
async def create_request(
    body: RequestCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create a request in `draft`, or `submitted` when asked to submit at once."""
    if user.role == UserRole.designer.value:
        raise HTTPException(status_code=403, detail="Designers cannot create requests")

    def build(code: str) -> DesignRequest:
        return DesignRequest(
            code=code,
            name=body.name.strip(),
            description=body.description,
            reference_link=body.reference_link or None,
            priority=body.priority.value,
            due_date=body.due_date,
            status=body.status,
            requester_id=user.id,
        )

    try:
        row = await add_with_fresh_code(db, build, prefix=get_settings().request_code_prefix)
    except RequestCodeConflict:
        raise HTTPException(status_code=409, detail="Could not allocate a request code, please retry")
    await record_audit(
        db, "request.created", "request", row.id,
        performed_by_id=user.id, details={"code": row.code, "status": body.status},
    )
    await db.commit()
    await db.refresh(row)

    logger.info("request_created", request_id=str(row.id), code=row.code, status=row.status)
    return row


@router.get("", response_model=RequestListResponse)
async def list_requests(
    mine: bool = Query(False),
    all_: bool = Query(False, alias="all"),
    status: RequestStatus | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List requests visible to the caller, newest first.

    Admins see everything. Designers see everything, or only their own
    assignments with `mine=true`. Requesters see their own, or the whole
    team's with `all=true`.
    """
    query = select(DesignRequest)
    if user.role == UserRole.designer.value and mine:
        query = query.where(DesignRequest.designer_id == user.id)
    elif user.role == UserRole.requester.value and not all_:
        query = query.where(DesignRequest.requester_id == user.id)
    if status is not None:
        query = query.where(DesignRequest.status == status.value)

    result = await db.execute(query.order_by(DesignRequest.created_at.desc()))
    rows = result.scalars().all()
    return RequestListResponse(
        items=[RequestResponse.model_validate(r) for r in rows],
        total=len(rows),
        user_role=user.role,
    )


@router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Request detail. Requesters may only read their own."""
    row = await _get_request(db, request_id)
    if user.role == UserRole.requester.value and row.requester_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return row


@router.patch("/{request_id}", response_model=RequestResponse)
async def update_request(
    request_id: UUID,
    body: RequestUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Edit descriptive fields. Requesters may only edit their own drafts."""
    row = await _get_request(db, request_id)

    if user.role == UserRole.designer.value:
        raise HTTPException(
            status_code=403,
            detail="Designers can only update request status or self-assign",
        )
    if user.role == UserRole.requester.value:
        if row.requester_id != user.id:
            raise HTTPException(status_code=403, detail="Access denied")
        if row.status != RequestStatus.draft.value:
            raise HTTPException(status_code=403, detail="You can only edit draft requests")

    changes = body.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        changes["name"] = changes["name"].strip()
    if changes.get("priority") is not None:
        changes["priority"] = changes["priority"].value
    for field, value in changes.items():
        setattr(row, field, value)
    row.updated_at = func.now()

    await db.commit()
    await db.refresh(row)
    logger.info("request_updated", request_id=str(request_id), fields=sorted(changes))
    return row


@router.patch("/{request_id}/status", response_model=WorkflowStateResponse)
async def change_status(
    request_id: UUID,
    body: StatusChangeRequest,
    user: User = Depends(get_current_user),
    runner: WorkflowRunner = Depends(get_workflow_runner),
):
    """Move a request to a new status under the caller's role."""
    outcome = await runner.execute(
        request_id,
        actor_for(user),
        ChangeStatus(target=body.status, published_link=body.published_link),
    )
    if isinstance(outcome, Deny):
        raise_http_exception(outcome.reason)
    return _workflow_response(outcome)


@router.patch("/{request_id}/designer", response_model=WorkflowStateResponse)
async def assign_designer(
    request_id: UUID,
    body: AssignDesignerRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    runner: WorkflowRunner = Depends(get_workflow_runner),
):
    """Assign a designer (admin) or claim an unassigned submitted request (designer)."""
    if user.role == UserRole.admin.value:
        result = await db.execute(select(User).where(User.id == body.designer_id))
        designer = result.scalar_one_or_none()
        if designer is None:
            raise HTTPException(status_code=404, detail="Designer not found")
        if designer.role != UserRole.designer.value or designer.status != "active":
            raise HTTPException(status_code=400, detail="User is not an active designer")

    outcome = await runner.execute(
        request_id, actor_for(user), AssignDesigner(designer_id=body.designer_id)
    )
    if isinstance(outcome, Deny):
        raise_http_exception(outcome.reason)
    return _workflow_response(outcome)


@router.delete("/{request_id}", status_code=204)
async def delete_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Delete a request outright (admin only)."""
    row = await _get_request(db, request_id)
    await db.execute(delete(DesignRequest).where(DesignRequest.id == row.id))
    await record_audit(
        db, "request.deleted", "request", request_id,
        performed_by_id=admin.id, details={"code": row.code},
    )
    await db.commit()
    logger.info("request_deleted", request_id=str(request_id), code=row.code)
