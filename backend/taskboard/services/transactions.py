"""Run a board mutation as one committed unit, retrying on transient contention."""

import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import settings
from taskboard.core.errors import StoreContentionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})


def is_transient(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True
    return "database is locked" in str(orig).lower()


async def run_unit_of_work(
    session: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: Optional[int] = None,
) -> T:
    """Await ``operation`` then commit; roll back on any failure.

    ``operation`` is re-invoked from scratch after a transient store error, so
    it must re-read everything it depends on. After ``max_attempts`` transient
    failures :class:`StoreContentionError` is raised.
    """
    attempts = max_attempts or settings.POSITION_SHIFT_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
            await session.commit()
            return result
        except DBAPIError as exc:
            await session.rollback()
            if not is_transient(exc):
                raise
            if attempt == attempts:
                logger.warning("Giving up after %s contended attempts", attempts)
                raise StoreContentionError() from exc
            logger.info("Transient store contention on attempt %s/%s, retrying", attempt, attempts)
        except Exception:
            await session.rollback()
            raise
    raise StoreContentionError()
