"""Comment thread on a design request."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.auth import actor_for, get_current_user
from designdesk.database import get_db
from designdesk.dependencies import get_workflow_runner
from designdesk.models import Comment, DesignRequest, User
from designdesk.schemas import CommentCreate, CommentResponse
from designdesk.workflow.commands import AddComment
from designdesk.workflow.errors import RequestNotFound, raise_http_exception
from designdesk.workflow.policy import UserRole
from designdesk.workflow.runner import WorkflowRunner
from designdesk.workflow.validator import Deny

router = APIRouter(prefix="/api/requests/{request_id}/comments", tags=["comments"])


@router.get("", response_model=list[CommentResponse])
async def list_comments(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Comments on a request, oldest first."""
    result = await db.execute(
        select(DesignRequest.requester_id).where(DesignRequest.id == request_id)
    )
    requester_id = result.scalar_one_or_none()
    if requester_id is None:
        raise_http_exception(RequestNotFound(str(request_id)))
    if user.role == UserRole.requester.value and requester_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")

    result = await db.execute(
        select(Comment)
        .where(Comment.request_id == request_id)
        .order_by(Comment.created_at.asc())
    )
    return result.scalars().all()


@router.post("", response_model=CommentResponse, status_code=201)
async def add_comment(
    request_id: UUID,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    runner: WorkflowRunner = Depends(get_workflow_runner),
):
    """Post a comment. Requester comments reach the designer as feedback."""
    outcome = await runner.execute(request_id, actor_for(user), AddComment(content=body.content))
    if isinstance(outcome, Deny):
        raise_http_exception(outcome.reason)
    return outcome.record
