"""
Field validators shared by the services.

Each check returns an error message or None; ``first_error`` picks the
first failure so a request reports one clear problem at a time.
"""

import math
import re
from typing import Optional

from backend.app.core.config import settings

GSTIN_RE = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")
PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]{1}$")
PHONE_RE = re.compile(r"^\d{10}$")
PINCODE_RE = re.compile(r"^\d{6}$")
EWAY_BILL_RE = re.compile(r"^\d{12}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Indian registration: state code + 2 digits + 1-3 letters + 1-4 digits, e.g. MH12AB1234
VEHICLE_NUMBER_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z]{1,3}[0-9]{1,4}$")


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_gstin(value: Optional[str]) -> Optional[str]:
    if _blank(value):
        return None
    if not GSTIN_RE.match(value.strip().upper()):
        return "GSTIN must be 15 characters in format 22AAAAA0000A1Z5"
    return None


def validate_pan(value: Optional[str]) -> Optional[str]:
    if _blank(value):
        return None
    if not PAN_RE.match(value.strip().upper()):
        return "PAN must be 10 characters in format AAAAA0000A"
    return None


def validate_phone(value: Optional[str]) -> Optional[str]:
    if _blank(value):
        return None
    if not PHONE_RE.match(re.sub(r"[\s\-]", "", value.strip())):
        return "Phone must be a 10-digit number"
    return None


def validate_pincode(value: Optional[str]) -> Optional[str]:
    if _blank(value):
        return None
    if not PINCODE_RE.match(value.strip()):
        return "Pincode must be exactly 6 digits"
    return None


def validate_email(value: Optional[str]) -> Optional[str]:
    if _blank(value):
        return None
    if not EMAIL_RE.match(value.strip()):
        return "Invalid email format"
    return None


def validate_eway_bill(value: Optional[str]) -> Optional[str]:
    if _blank(value):
        return None
    if not EWAY_BILL_RE.match(value.strip()):
        return "E-way bill number must be exactly 12 digits"
    return None


def normalize_vehicle_number(value: str) -> str:
    return re.sub(r"\s+", "", value or "").upper()


def validate_vehicle_number(value: Optional[str]) -> Optional[str]:
    clean = normalize_vehicle_number(value or "")
    if not clean:
        return "Vehicle number is required"
    if not VEHICLE_NUMBER_RE.match(clean):
        return "Invalid vehicle number format (e.g. MH12AB1234)"
    return None


def validate_amount(amount: Optional[float], field: str = "Amount") -> Optional[str]:
    if amount is None or math.isnan(amount) or amount <= 0:
        return f"{field} must be greater than zero"
    if amount > settings.max_amount:
        return f"{field} value seems too large, please verify"
    return None


def validate_non_negative(amount: Optional[float], field: str = "Amount") -> Optional[str]:
    if amount is None or math.isnan(amount) or amount < 0:
        return f"{field} cannot be negative"
    if amount > settings.max_amount:
        return f"{field} value seems too large, please verify"
    return None


def required(value, message: str) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return message
    return None


def first_error(*checks: Optional[str]) -> Optional[str]:
    """Return the first error found, or None if all pass."""
    return next((check for check in checks if check), None)
