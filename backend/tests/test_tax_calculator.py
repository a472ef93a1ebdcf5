"""
GST split tests.
"""

import pytest

from backend.app.core.exceptions import ValidationFailedError
from backend.app.domain.billing.tax_calculator import compute_tax, is_interstate_supply, round2


def test_intrastate_splits_cgst_and_sgst():
    tax = compute_tax(1000, 18, False)
    assert tax.cgst == 90.00
    assert tax.sgst == 90.00
    assert tax.igst == 0
    assert tax.total == 1180.00


def test_interstate_charges_igst_only():
    tax = compute_tax(1000, 18, True)
    assert tax.igst == 180.00
    assert tax.cgst == 0
    assert tax.sgst == 0
    assert tax.total == 1180.00


def test_each_component_is_rounded_before_the_total():
    # 1.3 * 9% = 0.117 -> 0.12 per half, while 1.3 * 18% = 0.234 -> 0.23
    intra = compute_tax(1.3, 18, False)
    inter = compute_tax(1.3, 18, True)

    assert (intra.cgst, intra.sgst) == (0.12, 0.12)
    assert intra.total == 1.54
    assert inter.igst == 0.23
    assert inter.total == 1.53


def test_rounding_to_paise():
    tax = compute_tax(333.33, 12, False)
    assert tax.cgst == tax.sgst == 20.00
    assert tax.total == 373.33


def test_zero_rate_is_allowed():
    tax = compute_tax(5000, 0, False)
    assert tax == (0, 0, 0, 5000)


def test_same_inputs_same_outputs():
    assert compute_tax(12345.67, 5, False) == compute_tax(12345.67, 5, False)


@pytest.mark.parametrize("rate", [-1, 28.01, 100, None])
def test_rate_outside_range_is_rejected(rate):
    with pytest.raises(ValidationFailedError) as exc:
        compute_tax(1000, rate, False)
    assert exc.value.message == "Invalid GST rate"


def test_maximum_rate_is_accepted():
    assert compute_tax(100, 28, True).igst == 28.00


@pytest.mark.parametrize("party_state, company_state, expected", [
    ("Rajasthan", "Rajasthan", False),
    ("rajasthan ", "RAJASTHAN", False),
    ("Delhi", "Rajasthan", True),
    ("", "Rajasthan", False),
    ("Delhi", "", False),
    (None, None, False),
])
def test_interstate_detection(party_state, company_state, expected):
    assert is_interstate_supply(party_state, company_state) is expected


def test_round2_rounds_half_up():
    assert round2(2.5) == 2.5
    assert round2(0.125) == 0.13
    assert round2(10) == 10.0
