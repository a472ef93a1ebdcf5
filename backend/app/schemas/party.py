"""
Party and ledger statement schemas.
"""

from pydantic import BaseModel, Field
from datetime import date as Date, datetime
from typing import Optional, List
from backend.app.models.enums import PartyType
from backend.app.models.billing_enums import LedgerType


class PartyCreate(BaseModel):
    """Schema for adding a party. Formats are checked by the party service."""
    type: PartyType
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    gstin: Optional[str] = None
    pan: Optional[str] = None
    credit_days: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class PartyUpdate(BaseModel):
    """Schema for editing a party. Only fields sent are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    gstin: Optional[str] = None
    pan: Optional[str] = None
    credit_days: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class PartyActiveUpdate(BaseModel):
    """Activate or deactivate a party."""
    is_active: bool


class PartyResponse(BaseModel):
    id: int
    type: PartyType
    name: str
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    pincode: Optional[str]
    gstin: Optional[str]
    pan: Optional[str]
    credit_days: Optional[int]
    notes: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LedgerLine(BaseModel):
    """One ledger entry with the running balance after it."""
    id: int
    date: Date
    type: LedgerType
    description: Optional[str]
    debit: float
    credit: float
    balance: float


class LedgerStatement(BaseModel):
    """Party ledger: entries oldest first, balance = sum(debit - credit)."""
    party_id: int
    party_name: str
    entries: List[LedgerLine]
    total_debit: float
    total_credit: float
    closing_balance: float
