"""Request store — the persistence contract the workflow runner relies on.

`save_snapshot` is a compare-and-set on the `version` column, so a
read → validate → apply → write cycle either lands on the exact row state
it validated against or fails with `StaleRequestError`.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.logging_config import get_logger
from designdesk.models import Comment, DesignRequest, User
from designdesk.services.audit_service import record_audit
from designdesk.workflow.commands import RequestSnapshot
from designdesk.workflow.effects import TransitionEvent
from designdesk.workflow.errors import StaleRequestError
from designdesk.workflow.policy import UserRole

logger = get_logger(__name__)


class RequestStore(Protocol):
    async def get_snapshot(self, request_id: UUID) -> RequestSnapshot | None: ...

    async def save_snapshot(self, snapshot: RequestSnapshot) -> RequestSnapshot: ...

    async def add_comment(self, request_id: UUID, author_id: UUID, content: str) -> Any: ...

    async def record_event(self, action: str, event: TransitionEvent) -> None: ...

    async def list_admin_ids(self) -> list[UUID]: ...

    async def get_username(self, user_id: UUID) -> str | None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SqlRequestStore:
    """RequestStore backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_snapshot(self, request_id: UUID) -> RequestSnapshot | None:
        result = await self.db.execute(
            select(DesignRequest).where(DesignRequest.id == request_id)
        )
        row = result.scalar_one_or_none()
        return row.to_snapshot() if row is not None else None

    async def save_snapshot(self, snapshot: RequestSnapshot) -> RequestSnapshot:
        """Write the workflow fields if the row still has `snapshot.version`."""
        result = await self.db.execute(
            update(DesignRequest)
            .where(
                DesignRequest.id == snapshot.id,
                DesignRequest.version == snapshot.version,
            )
            .values(
                status=snapshot.status.value,
                designer_id=snapshot.designer_id,
                published_link=snapshot.published_link,
                published_at=snapshot.published_at,
                version=DesignRequest.version + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(
                "request_version_conflict",
                request_id=str(snapshot.id),
                expected_version=snapshot.version,
            )
            raise StaleRequestError(str(snapshot.id))
        return replace(snapshot, version=snapshot.version + 1)

    async def add_comment(self, request_id: UUID, author_id: UUID, content: str) -> Comment:
        comment = Comment(request_id=request_id, author_id=author_id, content=content)
        self.db.add(comment)
        await self.db.flush()
        await self.db.refresh(comment)
        # Detached so a later notification rollback cannot expire it.
        self.db.expunge(comment)
        return comment

    async def record_event(self, action: str, event: TransitionEvent) -> None:
        await record_audit(
            self.db,
            action=action,
            target_type="request",
            target_id=event.request_id,
            performed_by_id=event.actor.id,
            details={
                "from_status": event.from_status.value,
                "to_status": event.to_status.value,
                "role": UserRole(event.actor.role).value,
                "at": event.timestamp.isoformat(),
                **event.extra_fields,
            },
        )

    async def list_admin_ids(self) -> list[UUID]:
        result = await self.db.execute(
            select(User.id).where(User.role == UserRole.admin.value)
        )
        return list(result.scalars().all())

    async def get_username(self, user_id: UUID) -> str | None:
        result = await self.db.execute(select(User.username).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
