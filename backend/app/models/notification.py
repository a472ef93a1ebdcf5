"""
Notification Database Model.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
import enum


class NotificationType(str, enum.Enum):
    INFO = "INFO"
    DELIVERY = "DELIVERY"
    BILL = "BILL"
    PAYMENT = "PAYMENT"


class Notification(Base):
    """
    In-App Notification.

    Office-wide feed (not per user), pointing at the entity that raised it.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Content
    type = Column(Enum(NotificationType), default=NotificationType.INFO, nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    # Source entity
    entity_type = Column(String(50), nullable=True)  # "consignment", "bill"
    entity_id = Column(Integer, nullable=True)

    # State
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, type='{self.type.value}', title='{self.title}')>"
