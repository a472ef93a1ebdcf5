"""
Ledger Entry database model.

Immutable record of every money movement, per party.
"""

from sqlalchemy import Column, Integer, Float, Date, ForeignKey, DateTime, Enum, String
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.billing_enums import LedgerType


class LedgerEntry(Base):
    """
    Ledger Entry model.

    One entry per money movement: RECEIVABLE entries credit the net cash
    received on a bill, PAYABLE entries debit what was paid to a vehicle owner.
    NO updates or deletions allowed.
    """
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    date = Column(Date, nullable=False, index=True)

    party_id = Column(Integer, ForeignKey("parties.id"), nullable=False, index=True)
    type = Column(Enum(LedgerType), nullable=False)

    # Financials
    debit = Column(Float, default=0.0, nullable=False)
    credit = Column(Float, default=0.0, nullable=False)
    description = Column(String(255), nullable=True)

    # Linkage (exactly one is set)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=True, index=True)
    vehicle_payment_id = Column(Integer, ForeignKey("vehicle_payments.id"), nullable=True, index=True)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, type='{self.type.value}', debit={self.debit}, credit={self.credit})>"
