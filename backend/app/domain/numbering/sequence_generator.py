"""
Sequence Generator (Domain Logic).

Issues GR (lorry receipt) numbers and bill numbers from counters kept in
the settings store.

Every counter bump is a single ``UPDATE ... RETURNING`` statement, so the
row lock taken by the update serialises concurrent callers and no two
transactions can observe the same counter value. The bump joins the
caller's transaction: if the booking or bill insert is rolled back, the
number is rolled back with it and is never considered issued.
"""

import logging

from sqlalchemy import Integer, String, cast, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.models.setting import SystemSetting
from backend.app.services.settings_service import (
    SettingsService, LR_PREFIX, LR_COUNTER, INVOICE_PREFIX, INVOICE_SERIES, INVOICE_COUNTER
)

logger = logging.getLogger(__name__)


def format_lr_number(prefix: str, counter: int) -> str:
    """GR0001 style: prefix + counter zero-padded to 4 digits."""
    return f"{prefix}{counter:04d}"


def format_bill_number(prefix: str, series: str, counter: int) -> str:
    """RR/2025-26/0001 style."""
    return f"{prefix}/{series}/{counter:04d}"


class SequenceGenerator:

    @staticmethod
    async def increment_and_get(db: AsyncSession, counter_key: str) -> int:
        """
        Atomically advance a counter and return the value it held.

        The stored value is the next number to issue. A missing counter row
        is created as if it had been seeded with 1; a concurrent creator loses
        on the unique key and the caller's transaction is retried.
        """
        stmt = (
            update(SystemSetting)
            .where(SystemSetting.key == counter_key)
            .values(value=cast(cast(SystemSetting.value, Integer) + 1, String))
            .returning(SystemSetting.value)
            .execution_options(synchronize_session="fetch")
        )
        result = await db.execute(stmt)
        new_value = result.scalar_one_or_none()

        if new_value is None:
            logger.warning("Counter %s missing from settings, starting at 1", counter_key)
            db.add(SystemSetting(key=counter_key, value="2"))
            await db.flush()
            return 1

        return int(new_value) - 1

    @staticmethod
    async def next_lr_number(db: AsyncSession) -> str:
        """
        Issue the next GR number, e.g. ``GR0001``.
        """
        counter = await SequenceGenerator.increment_and_get(db, LR_COUNTER)
        prefix = await SettingsService.get_value(db, LR_PREFIX, settings.default_lr_prefix)

        lr_number = format_lr_number(prefix, counter)
        logger.info("Issued GR number %s", lr_number)
        return lr_number

    @staticmethod
    async def next_bill_number(db: AsyncSession) -> str:
        """
        Issue the next bill number, e.g. ``RR/2025-26/0001``.
        """
        # Bump first so prefix/series are read under the counter lock
        counter = await SequenceGenerator.increment_and_get(db, INVOICE_COUNTER)
        prefix = await SettingsService.get_value(db, INVOICE_PREFIX, settings.default_invoice_prefix)
        series = await SettingsService.get_value(db, INVOICE_SERIES, settings.default_invoice_series)

        bill_number = format_bill_number(prefix, series, counter)
        logger.info("Issued bill number %s", bill_number)
        return bill_number
