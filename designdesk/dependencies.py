"""Shared FastAPI dependencies for the workflow routes."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.database import get_db
from designdesk.redis import get_redis_optional
from designdesk.services.notification_service import SqlNotificationDispatch
from designdesk.store import SqlRequestStore
from designdesk.workflow.runner import WorkflowRunner


def get_notification_dispatch(
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis_optional),
) -> SqlNotificationDispatch:
    return SqlNotificationDispatch(db, redis)


def get_workflow_runner(
    db: AsyncSession = Depends(get_db),
    dispatcher: SqlNotificationDispatch = Depends(get_notification_dispatch),
) -> WorkflowRunner:
    """Runner bound to this HTTP request's database session."""
    return WorkflowRunner(SqlRequestStore(db), dispatcher)
