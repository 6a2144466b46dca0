"""Notification service — persists and fans out notification intents."""

import json
from typing import Awaitable, Callable, Protocol, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.logging_config import get_logger
from designdesk.models import Notification
from designdesk.workflow.effects import NotificationIntent

logger = get_logger(__name__)


def user_channel(user_id: UUID) -> str:
    return f"user:{user_id}:notifications"


class NotificationDispatch(Protocol):
    async def dispatch(self, intents: Sequence[NotificationIntent]) -> list[Notification]: ...


def build_notification(intent: NotificationIntent) -> Notification:
    """Map an intent onto a Notification row (not yet added to a session)."""
    kind = intent.kind.value if hasattr(intent.kind, "value") else intent.kind
    return Notification(
        user_id=intent.recipient_id,
        from_user_id=intent.from_user_id,
        request_id=intent.request_id,
        notification_type=kind,
        title=intent.title,
        body=intent.message,
        link=intent.link,
    )


class SqlNotificationDispatch:
    """Insert one Notification row per intent, then publish to Redis.

    Database errors propagate to the caller; Redis errors are logged and
    ignored because the rows are already committed.
    """

    def __init__(self, db: AsyncSession, redis=None):
        self.db = db
        self.redis = redis

    async def dispatch(self, intents: Sequence[NotificationIntent]) -> list[Notification]:
        if not intents:
            return []

        rows = [build_notification(intent) for intent in intents]
        for row in rows:
            self.db.add(row)
        await self.db.commit()

        logger.info(
            "notifications_created",
            count=len(rows),
            recipients=[str(r.user_id) for r in rows],
        )

        if self.redis is not None:
            for row in rows:
                await self._publish(row)
        return rows

    async def _publish(self, row: Notification) -> None:
        channel = user_channel(row.user_id)
        event = json.dumps({
            "id": row.id,
            "notification_type": row.notification_type,
            "title": row.title,
            "body": row.body,
            "link": row.link,
            "request_id": str(row.request_id) if row.request_id else None,
        }, default=str)
        try:
            await self.redis.publish(channel, event)
        except Exception as e:
            logger.warning("redis_publish_failed", channel=channel, error=str(e))


async def dispatch_best_effort(
    dispatcher: NotificationDispatch,
    intents: Sequence[NotificationIntent],
    rollback: Callable[[], Awaitable[None]] | None = None,
    **log_fields,
) -> bool:
    """Dispatch intents after the caller's state is committed.

    Never raises: a failure is logged, the optional `rollback` discards the
    half-written notifications, and False is returned.
    """
    if not intents:
        return True
    try:
        await dispatcher.dispatch(intents)
    except Exception as e:
        logger.warning(
            "notification_dispatch_failed",
            intents=len(intents),
            error=str(e),
            **log_fields,
        )
        if rollback is not None:
            try:
                await rollback()
            except Exception as rollback_error:
                logger.warning("notification_rollback_failed", error=str(rollback_error))
        return False
    return True
