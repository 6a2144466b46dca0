"""Role change requests — users ask to switch role, admins approve or reject."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.auth import get_current_user, require_admin
from designdesk.database import get_db
from designdesk.dependencies import get_notification_dispatch
from designdesk.logging_config import get_logger
from designdesk.models import RoleChangeRequest, User
from designdesk.schemas import RoleChangeCreate, RoleChangeResponse, RoleChangeReview
from designdesk.services.audit_service import record_audit
from designdesk.services.notification_service import (
    NotificationDispatch,
    dispatch_best_effort,
)
from designdesk.workflow import admin_notices
from designdesk.workflow.policy import UserRole

logger = get_logger(__name__)
router = APIRouter(prefix="/api/role-change-requests", tags=["role-change-requests"])


@router.get("", response_model=list[RoleChangeResponse])
async def list_role_change_requests(
    status: str | None = Query(None, pattern="^(pending|approved|rejected)$"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Admins see every request; everyone else sees their own."""
    query = select(RoleChangeRequest).order_by(RoleChangeRequest.created_at.desc())
    if user.role != UserRole.admin.value:
        query = query.where(RoleChangeRequest.user_id == user.id)
    if status is not None:
        query = query.where(RoleChangeRequest.status == status)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=RoleChangeResponse, status_code=201)
async def create_role_change_request(
    body: RoleChangeCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    dispatcher: NotificationDispatch = Depends(get_notification_dispatch),
):
    if user.role == UserRole.admin.value:
        raise HTTPException(status_code=400, detail="Admins cannot change roles via this flow")
    if body.requested_role == user.role:
        raise HTTPException(status_code=400, detail="You already have this role")

    pending = await db.execute(
        select(RoleChangeRequest.id).where(
            RoleChangeRequest.user_id == user.id,
            RoleChangeRequest.status == "pending",
        )
    )
    if pending.first() is not None:
        raise HTTPException(
            status_code=400, detail="You already have a pending role change request"
        )

    row = RoleChangeRequest(
        user_id=user.id,
        from_role=user.role,
        requested_role=body.requested_role,
        reason=body.reason,
        status="pending",
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    logger.info(
        "role_change_requested",
        request_id=str(row.id),
        user_id=str(user.id),
        requested_role=body.requested_role,
    )

    admin_ids = (await db.execute(
        select(User.id).where(User.role == UserRole.admin.value, User.status == "active")
    )).scalars().all()
    intents = admin_notices.role_change_requested(
        list(admin_ids), user.id, user.username, user.role, body.requested_role
    )

    response = RoleChangeResponse.model_validate(row)
    await dispatch_best_effort(dispatcher, intents, rollback=db.rollback, role_request_id=str(row.id))
    return response


@router.patch("/{role_request_id}", response_model=RoleChangeResponse)
async def review_role_change_request(
    role_request_id: UUID,
    body: RoleChangeReview,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    dispatcher: NotificationDispatch = Depends(get_notification_dispatch),
):
    """Approve (which applies the new role) or reject a pending request."""
    result = await db.execute(
        select(RoleChangeRequest).where(RoleChangeRequest.id == role_request_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise HTTPException(status_code=404, detail="Request not found")
    if row.status != "pending":
        raise HTTPException(status_code=400, detail="Request has already been reviewed")

    approved = body.action == "approve"
    row.status = "approved" if approved else "rejected"
    row.reviewed_by_id = admin.id
    row.review_note = body.review_note

    if approved:
        target = (await db.execute(select(User).where(User.id == row.user_id))).scalar_one()
        target.role = row.requested_role

    await record_audit(
        db,
        "role_request.approved" if approved else "role_request.rejected",
        "user",
        row.user_id,
        performed_by_id=admin.id,
        details={
            "from_role": row.from_role,
            "requested_role": row.requested_role,
            "review_note": body.review_note,
        },
    )
    await db.commit()
    await db.refresh(row)
    logger.info(
        "role_change_reviewed",
        request_id=str(row.id),
        user_id=str(row.user_id),
        status=row.status,
    )

    intent = admin_notices.role_request_reviewed(
        row.user_id, admin.id, row.requested_role, approved, body.review_note
    )
    response = RoleChangeResponse.model_validate(row)
    await dispatch_best_effort(dispatcher, [intent], rollback=db.rollback, role_request_id=str(row.id))
    return response
