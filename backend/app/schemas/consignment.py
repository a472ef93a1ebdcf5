"""
Consignment schemas.

Request shapes stay permissive; business rules (required parties, freight
amount, phone and e-way bill formats) are checked by the consignment service
so the API and any other caller report the same messages.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from backend.app.models.consignment_enums import ConsignmentStatus, FreightType, PaymentType


class ConsignmentCreate(BaseModel):
    """Schema for booking a consignment."""
    booking_date: date
    consignor_id: Optional[int] = None
    consignee_id: Optional[int] = None
    agent_id: Optional[int] = None
    from_city: str = ""
    from_state: str = ""
    to_city: str = ""
    to_state: str = ""
    description: str = ""
    freight_type: FreightType = FreightType.FTL
    weight: Optional[float] = None
    quantity: Optional[int] = None
    unit: Optional[str] = None
    declared_value: Optional[float] = None
    freight_amount: float = 0
    payment_type: PaymentType = PaymentType.TBB
    eway_bill_number: Optional[str] = None
    invoice_challan_no: Optional[str] = None
    vehicle_id: Optional[int] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    vehicle_freight: Optional[float] = None
    advance_paid: float = 0
    notes: Optional[str] = None


class ConsignmentUpdate(BaseModel):
    """
    Schema for editing booking details.

    Only fields present in the request are changed. Status and the
    vehicle-payment accumulators are not editable here.
    """
    booking_date: Optional[date] = None
    consignor_id: Optional[int] = None
    consignee_id: Optional[int] = None
    agent_id: Optional[int] = None
    from_city: Optional[str] = None
    from_state: Optional[str] = None
    to_city: Optional[str] = None
    to_state: Optional[str] = None
    description: Optional[str] = None
    freight_type: Optional[FreightType] = None
    weight: Optional[float] = None
    quantity: Optional[int] = None
    unit: Optional[str] = None
    declared_value: Optional[float] = None
    freight_amount: Optional[float] = None
    payment_type: Optional[PaymentType] = None
    eway_bill_number: Optional[str] = None
    invoice_challan_no: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    vehicle_freight: Optional[float] = None
    notes: Optional[str] = None


class ConsignmentStatusUpdate(BaseModel):
    """Schema for a manual lifecycle transition."""
    status: ConsignmentStatus
    note: Optional[str] = Field(None, max_length=500)


class ConsignmentResponse(BaseModel):
    """Schema for consignment response."""
    id: int
    lr_number: str
    booking_date: date
    consignor_id: int
    consignee_id: int
    agent_id: Optional[int]
    from_city: str
    from_state: str
    to_city: str
    to_state: str
    description: str
    freight_type: FreightType
    weight: Optional[float]
    quantity: Optional[int]
    unit: Optional[str]
    declared_value: Optional[float]
    freight_amount: float
    payment_type: PaymentType
    eway_bill_number: Optional[str]
    invoice_challan_no: Optional[str]
    vehicle_id: Optional[int]
    driver_name: Optional[str]
    driver_phone: Optional[str]
    vehicle_freight: Optional[float]
    advance_paid: float
    balance_paid: float
    status: ConsignmentStatus
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ConsignmentLogResponse(BaseModel):
    """Schema for one status log row."""
    id: int
    consignment_id: int
    status: ConsignmentStatus
    note: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ConsignmentListResponse(BaseModel):
    """Schema for paginated consignment list."""
    consignments: List[ConsignmentResponse]
    total: int
    page: int
    limit: int
