"""Human-readable request codes: PREFIX-YYYY-NNN, numbered per year."""

from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.logging_config import get_logger
from designdesk.models import DesignRequest

logger = get_logger(__name__)

CODE_ATTEMPTS = 2


class RequestCodeConflict(Exception):
    """Every attempt collided with a code issued concurrently."""


def format_request_code(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:03d}"


def parse_sequence(code: str | None) -> int:
    """Trailing sequence number of a code, 0 if it has none."""
    if not code:
        return 0
    tail = code.rsplit("-", 1)[-1]
    return int(tail) if tail.isdigit() else 0


async def next_request_code(
    db: AsyncSession,
    prefix: str = "DRM",
    year: int | None = None,
) -> str:
    """Next free code for `year`; one past the highest issued, never reused."""
    year = year or datetime.now(timezone.utc).year
    year_prefix = f"{prefix}-{year}-"
    # Longest code first so 1000 sorts after 999.
    result = await db.execute(
        select(DesignRequest.code)
        .where(DesignRequest.code.startswith(year_prefix))
        .order_by(func.length(DesignRequest.code).desc(), DesignRequest.code.desc())
        .limit(1)
    )
    return format_request_code(prefix, year, parse_sequence(result.scalar_one_or_none()) + 1)


async def add_with_fresh_code(
    db: AsyncSession,
    build: Callable[[str], DesignRequest],
    prefix: str = "DRM",
    attempts: int = CODE_ATTEMPTS,
) -> DesignRequest:
    """Insert `build(code)` under the next free code, flushed but not committed.

    Two concurrent creates can read the same highest code; the loser's
    insert fails on the unique constraint inside a savepoint and is retried
    with a freshly read code.
    """
    for attempt in range(1, attempts + 1):
        code = await next_request_code(db, prefix=prefix)
        row = build(code)
        try:
            async with db.begin_nested():
                db.add(row)
                await db.flush()
        except IntegrityError as e:
            logger.warning("request_code_conflict", code=code, attempt=attempt, error=str(e.orig))
            continue
        return row
    raise RequestCodeConflict(f"No free request code after {attempts} attempts")
