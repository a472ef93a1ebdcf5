"""
Transaction reliability helpers.

Booking, billing and payment writes run as one unit of work. When the
database aborts that unit (lock timeout, serialization failure, a unique
number collision) the whole operation is re-run from scratch on a clean
session state; nothing from the aborted attempt is kept.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS = (IntegrityError, OperationalError)


async def run_in_transaction(
    db: AsyncSession,
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    attempts: int = None,
    **kwargs: Any
) -> T:
    """
    Run ``operation(db, *args, **kwargs)`` and commit.

    Application errors (validation, preconditions) roll back and propagate
    immediately. Database conflicts roll back and retry up to ``attempts``
    times before surfacing as ConcurrencyConflictError.
    """
    attempts = attempts or settings.transaction_retry_attempts

    for attempt in range(1, attempts + 1):
        try:
            result = await operation(db, *args, **kwargs)
            await db.commit()
            return result
        except RETRYABLE_ERRORS as exc:
            await db.rollback()
            logger.warning(
                "Transaction conflict in %s (attempt %d/%d): %s",
                getattr(operation, "__qualname__", operation), attempt, attempts, exc.__class__.__name__
            )
            if attempt == attempts:
                raise ConcurrencyConflictError() from exc
            await asyncio.sleep(0.05 * attempt)
        except Exception:
            await db.rollback()
            raise

    raise ConcurrencyConflictError()
