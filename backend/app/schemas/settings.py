"""
Settings store schemas.
"""

from pydantic import BaseModel
from typing import Dict, Optional


class CompanySettingsUpdate(BaseModel):
    """Company profile printed on bills. Only keys sent are written."""
    company_name: Optional[str] = None
    gst_number: Optional[str] = None
    pan: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class NumberingSettingsUpdate(BaseModel):
    """
    Document numbering.

    ``lr_counter`` / ``invoice_counter`` are the next numbers to issue;
    send them only to reset a sequence (e.g. a new financial year).
    """
    lr_prefix: Optional[str] = None
    invoice_prefix: Optional[str] = None
    invoice_series: Optional[str] = None
    lr_counter: Optional[str] = None
    invoice_counter: Optional[str] = None


class SettingsResponse(BaseModel):
    settings: Dict[str, str]
