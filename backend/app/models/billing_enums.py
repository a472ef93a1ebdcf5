"""
Billing enumerations.
"""

import enum


class BillStatus(str, enum.Enum):
    """Freight bill status enumeration."""
    DRAFT = "DRAFT"  # Created, numbers and tax fixed
    GENERATED = "GENERATED"  # Printed / finalised
    SENT = "SENT"  # Delivered to the party
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class LedgerType(str, enum.Enum):
    """Ledger side of a money movement."""
    RECEIVABLE = "RECEIVABLE"  # Money coming in from billing parties
    PAYABLE = "PAYABLE"  # Money going out to vehicle owners


class PaymentMode(str, enum.Enum):
    CASH = "CASH"
    CHEQUE = "CHEQUE"
    NEFT = "NEFT"
    RTGS = "RTGS"
    UPI = "UPI"
    OTHER = "OTHER"


class VehiclePaymentType(str, enum.Enum):
    """What a payment to a vehicle owner covers."""
    ADVANCE = "ADVANCE"
    BALANCE = "BALANCE"
    EXTRA = "EXTRA"
