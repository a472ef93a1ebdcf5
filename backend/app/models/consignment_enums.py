"""
Consignment-related enumerations.
"""

import enum


class ConsignmentStatus(str, enum.Enum):
    """Consignment (GR) status enumeration."""
    BOOKED = "BOOKED"  # GR issued, goods accepted
    IN_TRANSIT = "IN_TRANSIT"  # Loaded and moving
    DELIVERED = "DELIVERED"  # Handed over to consignee
    BILLED = "BILLED"  # Freight bill raised
    PARTIALLY_PAID = "PARTIALLY_PAID"  # Bill partly collected
    PAID = "PAID"  # Bill fully collected
    CANCELLED = "CANCELLED"


class FreightType(str, enum.Enum):
    FTL = "FTL"  # Full truck load
    LTL = "LTL"  # Part load
    WEIGHT_BASIS = "WEIGHT_BASIS"
    OTHER = "OTHER"


class PaymentType(str, enum.Enum):
    """Who pays the freight."""
    PAID = "PAID"  # Consignor paid at booking
    TO_PAY = "TO_PAY"  # Consignee pays on delivery
    TBB = "TBB"  # To be billed
