"""
Billing Schemas.

Bills, payments against bills, and payments to vehicle owners.
"""

from pydantic import BaseModel, Field
from datetime import date as Date, datetime
from typing import Optional, List
from backend.app.models.billing_enums import BillStatus, PaymentMode, VehiclePaymentType


class BillCreate(BaseModel):
    """
    Schema for raising a bill.

    ``gst_rate`` falls back to the ``gst_rate`` setting, ``is_interstate`` to
    a comparison of the party's state with the company state.
    """
    party_id: Optional[int] = None
    consignment_id: Optional[int] = None
    bill_date: Date
    due_date: Optional[Date] = None
    subtotal: float
    gst_rate: Optional[float] = None
    is_interstate: Optional[bool] = None
    description: Optional[str] = None
    notes: Optional[str] = None


class BillStatusUpdate(BaseModel):
    """Schema for the manual DRAFT -> GENERATED -> SENT markers."""
    status: BillStatus


class BillResponse(BaseModel):
    """Schema for displaying a bill."""
    id: int
    bill_number: str
    bill_date: Date
    due_date: Optional[Date]
    party_id: int
    consignment_id: Optional[int]
    subtotal: float
    gst_rate: float
    is_interstate: bool
    cgst: float
    sgst: float
    igst: float
    total_amount: float
    paid_amount: float
    outstanding_amount: float
    status: BillStatus
    description: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BillListResponse(BaseModel):
    """Paginated bill list."""
    bills: List[BillResponse]
    total: int
    page: int
    limit: int


class PaymentCreate(BaseModel):
    """
    Schema for recording a payment against a bill.

    ``amount`` is gross; ``tds_amount`` is the part withheld by the payer.
    Resubmitting with the same ``idempotency_key`` returns the first payment.
    """
    date: Optional[Date] = None
    amount: float
    tds_amount: float = 0
    mode: PaymentMode
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    idempotency_key: Optional[str] = Field(None, max_length=100)


class PaymentResponse(BaseModel):
    """Schema for displaying a payment."""
    id: int
    date: Date
    party_id: int
    bill_id: int
    amount: float
    tds_amount: float
    mode: PaymentMode
    reference: Optional[str]
    notes: Optional[str]
    idempotency_key: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentRecordedResponse(BaseModel):
    """Payment together with the bill it updated."""
    payment: PaymentResponse
    bill: BillResponse


class VehiclePaymentCreate(BaseModel):
    """Schema for paying a vehicle owner."""
    party_id: Optional[int] = None
    consignment_id: Optional[int] = None
    date: Optional[Date] = None
    amount: float
    type: VehiclePaymentType
    mode: PaymentMode
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class VehiclePaymentResponse(BaseModel):
    """Schema for displaying a vehicle payment."""
    id: int
    date: Date
    party_id: int
    consignment_id: Optional[int]
    amount: float
    type: VehiclePaymentType
    mode: PaymentMode
    reference: Optional[str]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
