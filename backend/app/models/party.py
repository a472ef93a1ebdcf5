"""
Party database model.

Companies (consignors, consignees, billing parties), agents and vehicle owners.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import PartyType


class Party(Base):
    """
    Party model.

    ``state`` drives GST interstate detection when the party is billed.
    Deleted parties keep their row for history but are never returned.
    """
    __tablename__ = "parties"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    type = Column(Enum(PartyType), nullable=False, index=True)

    name = Column(String(200), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    pincode = Column(String(10), nullable=True)

    # Tax identity
    gstin = Column(String(15), nullable=True)
    pan = Column(String(10), nullable=True)

    credit_days = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)  # Soft delete, hidden everywhere

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Party(id={self.id}, type='{self.type.value}', name='{self.name}')>"
