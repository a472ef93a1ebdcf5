"""
Bill database model.

Freight invoice raised on a billing party, optionally against one consignment.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.billing_enums import BillStatus


class Bill(Base):
    """
    Bill model.

    Tax columns and ``total_amount`` are fixed at creation
    (total = subtotal + cgst + sgst + igst). ``paid_amount`` is the gross
    running total of payments and only grows.
    """
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    bill_number = Column(String(50), unique=True, nullable=False, index=True)
    bill_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)

    party_id = Column(Integer, ForeignKey("parties.id"), nullable=False, index=True)
    consignment_id = Column(Integer, ForeignKey("consignments.id"), nullable=True, index=True)

    # Financials
    subtotal = Column(Float, nullable=False)
    gst_rate = Column(Float, nullable=False)
    is_interstate = Column(Boolean, default=False, nullable=False)
    cgst = Column(Float, default=0.0, nullable=False)
    sgst = Column(Float, default=0.0, nullable=False)
    igst = Column(Float, default=0.0, nullable=False)
    total_amount = Column(Float, nullable=False)
    paid_amount = Column(Float, default=0.0, nullable=False)

    status = Column(Enum(BillStatus), default=BillStatus.DRAFT, nullable=False, index=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def outstanding_amount(self) -> float:
        return round(self.total_amount - self.paid_amount, 2)

    def __repr__(self):
        return f"<Bill(id={self.id}, number='{self.bill_number}', status='{self.status.value}', total={self.total_amount})>"
