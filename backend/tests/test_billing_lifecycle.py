"""
Bill state machine tests.
"""

import pytest

from backend.app.core.exceptions import InvalidTransitionError, PreconditionFailedError
from backend.app.domain.billing import bill_lifecycle
from backend.app.models.billing_enums import BillStatus as B


def test_manual_markers_follow_draft_generated_sent():
    assert bill_lifecycle.ensure_manual_transition(B.DRAFT, B.GENERATED) == B.GENERATED
    assert bill_lifecycle.ensure_manual_transition(B.GENERATED, B.SENT) == B.SENT


@pytest.mark.parametrize("current, target", [
    (B.DRAFT, B.SENT),
    (B.SENT, B.GENERATED),
    (B.DRAFT, B.PAID),
    (B.DRAFT, B.PARTIALLY_PAID),
    (B.PARTIALLY_PAID, B.SENT),
    (B.PAID, B.GENERATED),
    (B.CANCELLED, B.DRAFT),
])
def test_other_manual_changes_are_rejected(current, target):
    with pytest.raises(InvalidTransitionError):
        bill_lifecycle.ensure_manual_transition(current, target)


@pytest.mark.parametrize("status", [B.DRAFT, B.GENERATED, B.SENT])
def test_unpaid_open_bill_can_be_cancelled(status):
    bill_lifecycle.ensure_cancellable(status, 0)


@pytest.mark.parametrize("status", list(B))
def test_bill_with_payments_can_never_be_cancelled(status):
    with pytest.raises(PreconditionFailedError) as exc:
        bill_lifecycle.ensure_cancellable(status, 0.01)
    assert exc.value.message == "Cannot cancel a bill with payments recorded"


@pytest.mark.parametrize("status", [B.PAID, B.CANCELLED, B.PARTIALLY_PAID])
def test_closed_or_paid_bill_cannot_be_cancelled(status):
    with pytest.raises(InvalidTransitionError):
        bill_lifecycle.ensure_cancellable(status, 0)


def test_status_after_payment():
    assert bill_lifecycle.status_after_payment(1180.0, 1180.0) == B.PAID
    assert bill_lifecycle.status_after_payment(1180.01, 1180.0) == B.PAID
    assert bill_lifecycle.status_after_payment(1179.99, 1180.0) == B.PARTIALLY_PAID
