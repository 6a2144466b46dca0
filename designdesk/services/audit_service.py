"""Append-only audit log of administrative and workflow actions."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.logging_config import get_logger
from designdesk.models import AuditLog

logger = get_logger(__name__)


async def record_audit(
    db: AsyncSession,
    action: str,
    target_type: str,
    target_id: UUID | str,
    performed_by_id: UUID | None = None,
    details: dict | None = None,
) -> AuditLog:
    """
    Add an audit entry to the session. The caller commits.

    Args:
        db: Database session
        action: e.g. 'request.status_changed', 'user.role_changed'
        target_type: 'request' or 'user'
        target_id: Id of the affected row
        performed_by_id: Acting user (optional)
        details: Additional structured data (optional)
    """
    entry = AuditLog(
        action=action,
        target_type=target_type,
        target_id=str(target_id),
        performed_by_id=performed_by_id,
        details=details or {},
    )
    db.add(entry)

    logger.info(
        "audit_recorded",
        action=action,
        target_type=target_type,
        target_id=str(target_id),
    )
    return entry
