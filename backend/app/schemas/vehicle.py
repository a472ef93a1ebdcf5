"""
Vehicle schemas.
"""

from pydantic import BaseModel, Field
from datetime import date as Date, datetime
from typing import Optional, List
from backend.app.models.enums import VehicleStatus, IncidentStatus


class VehicleCreate(BaseModel):
    """Schema for registering a vehicle. The number is normalised to MH12AB1234 form."""
    vehicle_number: str = Field(..., min_length=1, max_length=20)
    vehicle_type: str = Field(..., min_length=1, max_length=50)
    capacity_tons: Optional[float] = Field(None, gt=0)
    owner_id: int
    notes: Optional[str] = None


class VehicleUpdate(BaseModel):
    """Schema for editing vehicle details. Only fields sent are changed; status has its own endpoint."""
    vehicle_number: Optional[str] = Field(None, max_length=20)
    vehicle_type: Optional[str] = Field(None, max_length=50)
    capacity_tons: Optional[float] = Field(None, gt=0)
    owner_id: Optional[int] = None
    notes: Optional[str] = None


class VehicleStatusUpdate(BaseModel):
    """Manual status change (repairs, retirement)."""
    status: VehicleStatus


class VehicleResponse(BaseModel):
    id: int
    vehicle_number: str
    vehicle_type: str
    capacity_tons: Optional[float]
    owner_id: int
    status: VehicleStatus
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    vehicles: List[VehicleResponse]
    total: int


class VehicleDocumentCreate(BaseModel):
    type: str = Field("", max_length=50)
    document_no: Optional[str] = Field(None, max_length=100)
    issue_date: Optional[Date] = None
    expiry_date: Optional[Date] = None
    notes: Optional[str] = None


class VehicleDocumentResponse(BaseModel):
    id: int
    vehicle_id: int
    type: str
    document_no: Optional[str]
    issue_date: Optional[Date]
    expiry_date: Optional[Date]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class VehicleIncidentCreate(BaseModel):
    date: Optional[Date] = None
    description: str = ""
    cost: Optional[float] = None


class IncidentResolve(BaseModel):
    resolution: str = ""


class VehicleIncidentResponse(BaseModel):
    id: int
    vehicle_id: int
    date: Date
    description: str
    cost: Optional[float]
    status: IncidentStatus
    resolution: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
