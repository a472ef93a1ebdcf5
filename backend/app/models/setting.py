"""
System setting database model.

Key/value store for the company profile and document numbering
(prefixes, series and running counters).
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class SystemSetting(Base):
    """
    System setting model.

    Counters (``lr_counter``, ``invoice_counter``) hold the NEXT number to
    issue and are only ever moved by the sequence generator or by an
    explicit admin reset. Rows are never deleted.
    """
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(String(500), nullable=False, default="")

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<SystemSetting(key='{self.key}', value='{self.value}')>"
