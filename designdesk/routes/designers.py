"""Active designers, for the assignment picker."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.auth import get_current_user
from designdesk.database import get_db
from designdesk.models import User
from designdesk.schemas import UserSummary
from designdesk.workflow.policy import UserRole

router = APIRouter(prefix="/api/designers", tags=["designers"])


@router.get("", response_model=list[UserSummary])
async def list_designers(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(User)
        .where(User.role == UserRole.designer.value, User.status == "active")
        .order_by(User.username)
    )
    return result.scalars().all()
