"""Admin-only user administration: role and account status changes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.auth import require_admin
from designdesk.database import get_db
from designdesk.dependencies import get_notification_dispatch
from designdesk.logging_config import get_logger
from designdesk.models import User
from designdesk.schemas import UserResponse, UserUpdateRequest
from designdesk.services.audit_service import record_audit
from designdesk.services.notification_service import (
    NotificationDispatch,
    dispatch_best_effort,
)
from designdesk.workflow import admin_notices
from designdesk.workflow.policy import UserRole

logger = get_logger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: UserRole | None = Query(None),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    query = select(User).order_by(User.created_at.desc())
    if role is not None:
        query = query.where(User.role == role.value)
    result = await db.execute(query)
    return result.scalars().all()


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    body: UserUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    dispatcher: NotificationDispatch = Depends(get_notification_dispatch),
):
    """Change a user's role or activate/deactivate their account.

    The change and its audit entry are committed first; the notification
    to the affected user is best-effort.
    """
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot modify your own account")

    result = await db.execute(select(User).where(User.id == user_id))
    target = result.scalar_one_or_none()
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")

    if body.action == "change_role":
        if body.role is None:
            raise HTTPException(status_code=400, detail="Role is required")
        previous_role = target.role
        if previous_role == body.role.value:
            raise HTTPException(status_code=400, detail=f"User already has role {previous_role}")
        target.role = body.role.value
        await record_audit(
            db, "user.role_changed", "user", target.id,
            performed_by_id=admin.id,
            details={"from_role": previous_role, "to_role": body.role.value},
        )
        intent = admin_notices.role_changed(target.id, admin.id, previous_role, body.role.value)
    else:
        if body.status is None:
            raise HTTPException(status_code=400, detail="Status is required")
        if target.status == body.status:
            raise HTTPException(status_code=400, detail=f"User is already {body.status}")
        active = body.status == "active"
        target.status = body.status
        await record_audit(
            db, "user.activated" if active else "user.deactivated", "user", target.id,
            performed_by_id=admin.id,
        )
        intent = admin_notices.account_status_changed(target.id, admin.id, active)

    await db.commit()
    await db.refresh(target)
    logger.info(
        "user_updated",
        user_id=str(target.id),
        action=body.action,
        role=target.role,
        status=target.status,
    )

    response = UserResponse.model_validate(target)
    await dispatch_best_effort(dispatcher, [intent], rollback=db.rollback, user_id=str(target.id))
    return response
