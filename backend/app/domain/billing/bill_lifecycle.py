"""
Billing Lifecycle (state machine).

DRAFT -> GENERATED -> SENT are manual markers. PARTIALLY_PAID and PAID are
derived from the paid amount on every payment. CANCELLED is only reachable
before any money has been received.
"""

from typing import Dict, FrozenSet

from backend.app.core.exceptions import InvalidTransitionError, PreconditionFailedError
from backend.app.models.billing_enums import BillStatus

B = BillStatus

MANUAL_TRANSITIONS: Dict[BillStatus, FrozenSet[BillStatus]] = {
    B.DRAFT: frozenset({B.GENERATED}),
    B.GENERATED: frozenset({B.SENT}),
}

CANCELLABLE_STATUSES = frozenset({B.DRAFT, B.GENERATED, B.SENT})

# Bills that no longer accept payments
CLOSED_STATUSES = frozenset({B.PAID, B.CANCELLED})


def ensure_manual_transition(current: BillStatus, target: BillStatus) -> BillStatus:
    """
    Raises:
        InvalidTransitionError: Unless ``target`` is the next manual marker.
    """
    target = BillStatus(target)
    if target not in MANUAL_TRANSITIONS.get(BillStatus(current), frozenset()):
        raise InvalidTransitionError("bill", current, target)
    return target


def ensure_cancellable(current: BillStatus, paid_amount: float) -> None:
    """
    A bill with any payment recorded can never be cancelled, whatever its status.

    Raises:
        PreconditionFailedError: If payments exist.
        InvalidTransitionError: If the status is past SENT.
    """
    if paid_amount > 0:
        raise PreconditionFailedError(
            "Cannot cancel a bill with payments recorded",
            details={"paid_amount": paid_amount}
        )
    if BillStatus(current) not in CANCELLABLE_STATUSES:
        raise InvalidTransitionError("bill", current, B.CANCELLED)


def status_after_payment(paid_amount: float, total_amount: float) -> BillStatus:
    return B.PAID if paid_amount >= total_amount else B.PARTIALLY_PAID
