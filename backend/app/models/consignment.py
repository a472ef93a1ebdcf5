"""
Consignment database models.

One row per freight booking (GR), plus an append-only status log.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.consignment_enums import ConsignmentStatus, FreightType, PaymentType


class Consignment(Base):
    """
    Consignment model.

    ``lr_number`` is issued by the sequence generator in the same transaction
    that inserts the row. ``status`` is authoritative; the log is history only.
    """
    __tablename__ = "consignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    lr_number = Column(String(50), unique=True, nullable=False, index=True)
    booking_date = Column(Date, nullable=False)

    # Parties
    consignor_id = Column(Integer, ForeignKey("parties.id"), nullable=False, index=True)
    consignee_id = Column(Integer, ForeignKey("parties.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("parties.id"), nullable=True, index=True)

    # Route
    from_city = Column(String(100), nullable=False)
    from_state = Column(String(100), nullable=False, default="")
    to_city = Column(String(100), nullable=False)
    to_state = Column(String(100), nullable=False, default="")

    # Cargo
    description = Column(Text, nullable=False)
    freight_type = Column(Enum(FreightType), default=FreightType.FTL, nullable=False)
    weight = Column(Float, nullable=True)
    quantity = Column(Integer, nullable=True)
    unit = Column(String(20), nullable=True)
    declared_value = Column(Float, nullable=True)
    eway_bill_number = Column(String(12), nullable=True)
    invoice_challan_no = Column(String(100), nullable=True)

    # Freight
    freight_amount = Column(Float, nullable=False)
    payment_type = Column(Enum(PaymentType), default=PaymentType.TBB, nullable=False)

    # Vehicle assignment
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True, index=True)
    driver_name = Column(String(100), nullable=True)
    driver_phone = Column(String(20), nullable=True)
    vehicle_freight = Column(Float, nullable=True)  # Agreed hire charge
    advance_paid = Column(Float, default=0.0, nullable=False)
    balance_paid = Column(Float, default=0.0, nullable=False)

    status = Column(Enum(ConsignmentStatus), default=ConsignmentStatus.BOOKED, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Consignment(id={self.id}, lr='{self.lr_number}', status='{self.status.value}')>"


class ConsignmentLog(Base):
    """
    Consignment status log.

    Immutable: one row per transition, written in the transition's
    transaction. NO updates or deletions.
    """
    __tablename__ = "consignment_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    consignment_id = Column(Integer, ForeignKey("consignments.id"), nullable=False, index=True)
    status = Column(Enum(ConsignmentStatus), nullable=False)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ConsignmentLog(consignment_id={self.consignment_id}, status='{self.status.value}')>"
