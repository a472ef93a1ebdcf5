"""
Consignment Lifecycle (state machine).

Manual transitions are user-chosen; the billing and payment cascades are
computed by the pure functions at the bottom and applied by the services.
"""

from typing import Dict, FrozenSet, Optional

from backend.app.core.exceptions import InvalidTransitionError
from backend.app.models.consignment_enums import ConsignmentStatus

S = ConsignmentStatus

MANUAL_TRANSITIONS: Dict[ConsignmentStatus, FrozenSet[ConsignmentStatus]] = {
    S.BOOKED: frozenset({S.IN_TRANSIT, S.CANCELLED}),
    S.IN_TRANSIT: frozenset({S.DELIVERED, S.CANCELLED}),
    S.DELIVERED: frozenset({S.BILLED, S.CANCELLED}),
    S.BILLED: frozenset({S.PARTIALLY_PAID, S.PAID}),
    S.PARTIALLY_PAID: frozenset({S.PAID}),
    S.PAID: frozenset(),
    S.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in MANUAL_TRANSITIONS.items() if not targets)

# Statuses whose vehicle is released back to AVAILABLE on entry
VEHICLE_RELEASING_STATUSES = frozenset({S.DELIVERED, S.CANCELLED})


def allowed_transitions(current: ConsignmentStatus) -> FrozenSet[ConsignmentStatus]:
    return MANUAL_TRANSITIONS[ConsignmentStatus(current)]


def can_transition(current: ConsignmentStatus, target: ConsignmentStatus) -> bool:
    return ConsignmentStatus(target) in allowed_transitions(current)


def ensure_transition(current: ConsignmentStatus, target: ConsignmentStatus) -> ConsignmentStatus:
    """
    Validate a manual transition and return the new status.

    Raises:
        InvalidTransitionError: If ``target`` is not reachable from ``current``.
    """
    if not can_transition(current, target):
        raise InvalidTransitionError("consignment", current, target)
    return ConsignmentStatus(target)


def status_after_bill_created(current: ConsignmentStatus) -> Optional[ConsignmentStatus]:
    """A new bill moves the consignment to BILLED only from exactly DELIVERED."""
    if current == S.DELIVERED:
        return S.BILLED
    return None


def status_after_bill_payment(current: ConsignmentStatus, bill_fully_paid: bool) -> Optional[ConsignmentStatus]:
    """
    Consignment status after a payment on its bill, or None for no change.

    A fully paid bill closes any consignment that is not already PAID or
    CANCELLED. A partial payment only moves a consignment that is exactly
    BILLED; from any other status the cascade is skipped.
    """
    if bill_fully_paid:
        if current in (S.PAID, S.CANCELLED):
            return None
        return S.PAID
    if current == S.BILLED:
        return S.PARTIALLY_PAID
    return None
