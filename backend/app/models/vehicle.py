"""
Vehicle database model.

Hired or owned trucks, each belonging to a VEHICLE_OWNER party, with their
paperwork (RC, insurance, permits) and incident records.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import VehicleStatus, IncidentStatus


class Vehicle(Base):
    """
    Vehicle model.

    ``status`` is AVAILABLE -> ON_TRIP when assigned at booking and
    back to AVAILABLE when the consignment is delivered.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_number = Column(String(20), unique=True, nullable=False, index=True)
    vehicle_type = Column(String(50), nullable=False)  # e.g. "TRUCK", "TRAILER", "CONTAINER"
    capacity_tons = Column(Float, nullable=True)

    owner_id = Column(Integer, ForeignKey("parties.id"), nullable=False, index=True)

    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, number='{self.vehicle_number}', status='{self.status.value}')>"


class VehicleDocument(Base):
    """
    Paperwork held for a vehicle.

    Only the metadata is stored; scans live outside this service.
    """
    __tablename__ = "vehicle_documents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    type = Column(String(50), nullable=False)  # e.g. "RC", "INSURANCE", "PERMIT", "FITNESS", "PUC"
    document_no = Column(String(100), nullable=True)
    issue_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<VehicleDocument(id={self.id}, vehicle_id={self.vehicle_id}, type='{self.type}')>"


class VehicleIncident(Base):
    """Breakdown, accident or fine logged against a vehicle. OPEN until resolved."""
    __tablename__ = "vehicle_incidents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)
    cost = Column(Float, nullable=True)
    status = Column(Enum(IncidentStatus), default=IncidentStatus.OPEN, nullable=False, index=True)
    resolution = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<VehicleIncident(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
