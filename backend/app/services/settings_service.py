"""
Settings Service.

Reads and writes the key/value settings store: company profile and
document numbering. Counters are only written here by an explicit
admin reset; day-to-day increments go through the sequence generator.
"""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import ValidationFailedError
from backend.app.core.validators import first_error, validate_gstin, validate_pan, validate_phone, validate_pincode, validate_email
from backend.app.models.setting import SystemSetting

logger = logging.getLogger(__name__)

LR_PREFIX = "lr_prefix"
LR_COUNTER = "lr_counter"
INVOICE_PREFIX = "invoice_prefix"
INVOICE_SERIES = "invoice_series"
INVOICE_COUNTER = "invoice_counter"
COMPANY_STATE = "state"

COMPANY_KEYS = (
    "company_name", "gst_number", "pan", "address", "city",
    "state", "pincode", "phone", "email",
)
NUMBERING_KEYS = (LR_PREFIX, INVOICE_PREFIX, INVOICE_SERIES)
COUNTER_KEYS = (LR_COUNTER, INVOICE_COUNTER)


def default_settings() -> Dict[str, str]:
    """Values written the first time the store is seeded."""
    return {
        "company_name": settings.default_company_name,
        "gst_number": "",
        "pan": "",
        "address": "",
        "city": "",
        "state": "",
        "pincode": "",
        "phone": "",
        "email": "",
        INVOICE_PREFIX: settings.default_invoice_prefix,
        INVOICE_SERIES: settings.default_invoice_series,
        INVOICE_COUNTER: "1",
        LR_PREFIX: settings.default_lr_prefix,
        LR_COUNTER: "1",
        "gst_rate": settings.default_gst_rate,
    }


class SettingsService:

    @staticmethod
    async def seed_defaults(db: AsyncSession) -> int:
        """
        Insert every default key that is missing. Existing values are kept.

        Returns:
            Number of keys created
        """
        result = await db.execute(select(SystemSetting.key))
        existing = set(result.scalars().all())

        created = 0
        for key, value in default_settings().items():
            if key not in existing:
                db.add(SystemSetting(key=key, value=value))
                created += 1

        if created:
            await db.flush()
            logger.info("Seeded %d default settings", created)
        return created

    @staticmethod
    async def get_all(db: AsyncSession) -> Dict[str, str]:
        result = await db.execute(select(SystemSetting).order_by(SystemSetting.key))
        return {row.key: row.value for row in result.scalars().all()}

    @staticmethod
    async def get_value(db: AsyncSession, key: str, default: Optional[str] = None) -> Optional[str]:
        result = await db.execute(select(SystemSetting.value).where(SystemSetting.key == key))
        value = result.scalar_one_or_none()
        return default if value is None else value

    @staticmethod
    async def _upsert(db: AsyncSession, values: Dict[str, str], allowed: Iterable[str]) -> Dict[str, str]:
        allowed = set(allowed)
        unknown = sorted(set(values) - allowed)
        if unknown:
            raise ValidationFailedError(
                f"Unknown setting(s): {', '.join(unknown)}", details={"keys": unknown}
            )

        for key, value in values.items():
            result = await db.execute(
                select(SystemSetting).where(SystemSetting.key == key).with_for_update()
            )
            row = result.scalar_one_or_none()
            if row:
                row.value = value
            else:
                db.add(SystemSetting(key=key, value=value))

        await db.flush()
        return values

    @staticmethod
    async def save_company(db: AsyncSession, values: Dict[str, str]) -> Dict[str, str]:
        """Save company profile keys (name, GST number, address, state...)."""
        values = {key: (value or "").strip() for key, value in values.items()}
        error = first_error(
            validate_gstin(values.get("gst_number")),
            validate_pan(values.get("pan")),
            validate_phone(values.get("phone")),
            validate_pincode(values.get("pincode")),
            validate_email(values.get("email")),
        )
        if error:
            raise ValidationFailedError(error)

        return await SettingsService._upsert(db, values, COMPANY_KEYS)

    @staticmethod
    async def save_numbering(db: AsyncSession, values: Dict[str, str]) -> Dict[str, str]:
        """
        Save numbering prefixes and series, and optionally reset counters.

        Changing ``invoice_series`` does not touch ``invoice_counter``;
        a new financial year needs an explicit counter reset.
        """
        values = {key: (value or "").strip() for key, value in values.items()}

        for key in NUMBERING_KEYS:
            if key in values and not values[key]:
                raise ValidationFailedError(f"{key} cannot be empty")
            if key in values and "/" in values[key]:
                raise ValidationFailedError(f"{key} cannot contain '/'")

        for key in COUNTER_KEYS:
            if key in values:
                if not values[key].isdigit() or int(values[key]) < 1:
                    raise ValidationFailedError(f"{key} must be a positive whole number")
                values[key] = str(int(values[key]))
                logger.warning("Numbering counter %s reset to %s", key, values[key])

        return await SettingsService._upsert(db, values, NUMBERING_KEYS + COUNTER_KEYS)
