"""
GST Tax Calculator.

Splits GST on a freight subtotal into CGST + SGST (intrastate supply) or
IGST (interstate supply). Pure functions, no database access.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple, Union

from backend.app.core.config import settings
from backend.app.core.exceptions import ValidationFailedError

Number = Union[int, float, Decimal]

CENT = Decimal("0.01")


def round2(value: Number) -> float:
    """
    Round a currency amount to paise.

    Rounds the exact binary value half-up, which reproduces the totals of
    bills issued by the previous system digit for digit.
    """
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


class TaxBreakdown(NamedTuple):
    cgst: float
    sgst: float
    igst: float
    total: float


def compute_tax(subtotal: Number, gst_rate_percent: Number, is_interstate: bool) -> TaxBreakdown:
    """
    Compute the GST split for a bill.

    Each component is rounded before it is added into the total.

    Raises:
        ValidationFailedError: If the rate is outside 0-28 %.
    """
    if gst_rate_percent is None or not 0 <= float(gst_rate_percent) <= settings.max_gst_rate:
        raise ValidationFailedError("Invalid GST rate", details={"gst_rate": gst_rate_percent})

    subtotal = float(subtotal)
    rate = float(gst_rate_percent) / 100

    cgst = sgst = igst = 0.0
    if is_interstate:
        igst = round2(subtotal * rate)
    else:
        cgst = round2(subtotal * (rate / 2))
        sgst = round2(subtotal * (rate / 2))

    total = round2(subtotal + cgst + sgst + igst)
    return TaxBreakdown(cgst=cgst, sgst=sgst, igst=igst, total=total)


def is_interstate_supply(party_state: str, company_state: str) -> bool:
    """
    Interstate when the billed party sits in a different state than the company.

    When either state is unknown the supply is treated as intrastate.
    """
    if not party_state or not company_state:
        return False
    return party_state.strip().casefold() != company_state.strip().casefold()
