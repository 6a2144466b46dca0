"""Admin endpoints: dashboard statistics and the audit trail."""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.auth import require_admin
from designdesk.database import get_db
from designdesk.models import AuditLog, DesignRequest, RoleChangeRequest, User
from designdesk.schemas import (
    AdminStatsResponse,
    AuditLogResponse,
    PaginatedAuditLogs,
    RequestStats,
    UserStats,
)
from designdesk.workflow.policy import STATUS_BUCKETS, RequestStatus, UserRole

router = APIRouter(prefix="/api/admin", tags=["admin"])

RECENT_LOGIN_WINDOW = timedelta(days=7)


async def _count(db: AsyncSession, *criteria) -> int:
    return (await db.execute(select(func.count()).where(*criteria))).scalar() or 0


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """Counts for the admin dashboard: users, requests per workflow bucket."""
    user_rows = (await db.execute(
        select(User.role, User.status, func.count()).group_by(User.role, User.status)
    )).all()
    request_rows = (await db.execute(
        select(DesignRequest.status, func.count()).group_by(DesignRequest.status)
    )).all()

    by_role = {role.value: 0 for role in UserRole}
    by_user_status = {"active": 0, "inactive": 0}
    for role, user_status, count in user_rows:
        by_role[role] = by_role.get(role, 0) + count
        by_user_status[user_status] = by_user_status.get(user_status, 0) + count

    by_status = {s.value: 0 for s in RequestStatus}
    for request_status, count in request_rows:
        by_status[request_status] = count

    def bucket(name: str) -> int:
        return sum(by_status[s.value] for s in STATUS_BUCKETS[name])

    now = datetime.now(timezone.utc)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    pending_role_changes = await _count(db, RoleChangeRequest.status == "pending")
    recent_logins = await _count(db, User.last_login >= now - RECENT_LOGIN_WINDOW)
    new_this_month = await _count(db, User.created_at >= month_start)

    return AdminStatsResponse(
        users=UserStats(
            total=sum(by_role.values()),
            active=by_user_status["active"],
            inactive=by_user_status["inactive"],
            by_role=by_role,
            recent_logins=recent_logins,
            new_this_month=new_this_month,
        ),
        requests=RequestStats(
            total=sum(by_status.values()),
            pending=bucket("pending"),
            in_progress=bucket("in_progress"),
            completed=bucket("completed"),
            by_status=by_status,
        ),
        pending_role_changes=pending_role_changes,
    )


@router.get("/audit-logs", response_model=PaginatedAuditLogs)
async def list_audit_logs(
    target_type: str | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """Audit trail, newest first, optionally filtered by target type."""
    base = select(AuditLog)
    if target_type:
        base = base.where(AuditLog.target_type == target_type)

    total = (await db.execute(
        select(func.count()).select_from(base.subquery())
    )).scalar() or 0

    query = base.order_by(AuditLog.created_at.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)
    rows = (await db.execute(query)).scalars().all()

    return PaginatedAuditLogs(
        items=[AuditLogResponse.model_validate(r) for r in rows],
        total=total,
        page=page,
        per_page=per_page,
    )
