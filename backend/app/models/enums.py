"""
Shared enumerations: user roles, party types, vehicle and incident status.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        OWNER: Business owner, full access
        MANAGER: Full access to operations and settings
        STAFF: Day-to-day bookings, billing and payments
        AGENT: Booking agent, read access
        READ_ONLY: Read access to everything
    """
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    AGENT = "AGENT"
    READ_ONLY = "READ_ONLY"


ADMIN_ROLES = frozenset({UserRole.OWNER, UserRole.MANAGER})


class PartyType(str, enum.Enum):
    """Kinds of counterparties the business deals with."""
    COMPANY = "COMPANY"  # Consignors, consignees and billing parties
    AGENT = "AGENT"  # Booking agents
    VEHICLE_OWNER = "VEHICLE_OWNER"  # Hired truck owners


class VehicleStatus(str, enum.Enum):
    """Vehicle availability."""
    AVAILABLE = "AVAILABLE"
    ON_TRIP = "ON_TRIP"
    IN_REPAIR = "IN_REPAIR"
    INACTIVE = "INACTIVE"


class IncidentStatus(str, enum.Enum):
    """Vehicle incident state."""
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"
