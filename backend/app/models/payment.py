"""
Payment database models.

Money received against bills and money paid to vehicle owners.
Both are immutable once written.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.billing_enums import PaymentMode, VehiclePaymentType


class Payment(Base):
    """
    Payment received against a bill.

    ``amount`` is gross (what reduces the bill); ``tds_amount`` was withheld
    by the payer, so cash received is ``amount - tds_amount``.
    ``idempotency_key`` de-duplicates retried submissions.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    date = Column(Date, nullable=False)

    party_id = Column(Integer, ForeignKey("parties.id"), nullable=False, index=True)
    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    tds_amount = Column(Float, default=0.0, nullable=False)
    mode = Column(Enum(PaymentMode), nullable=False)
    reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    idempotency_key = Column(String(100), unique=True, nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Payment(id={self.id}, bill_id={self.bill_id}, amount={self.amount}, tds={self.tds_amount})>"


class VehiclePayment(Base):
    """
    Payment made to a vehicle owner for a trip (advance, balance or extra).
    """
    __tablename__ = "vehicle_payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    date = Column(Date, nullable=False)

    party_id = Column(Integer, ForeignKey("parties.id"), nullable=False, index=True)  # Vehicle owner
    consignment_id = Column(Integer, ForeignKey("consignments.id"), nullable=True, index=True)

    amount = Column(Float, nullable=False)
    type = Column(Enum(VehiclePaymentType), nullable=False)
    mode = Column(Enum(PaymentMode), nullable=False)
    reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<VehiclePayment(id={self.id}, type='{self.type.value}', amount={self.amount})>"
