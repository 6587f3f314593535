"""
Money Helpers

Decimal conversion and minor-unit rounding shared by the pricing,
tax and reporting modules.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert a number or numeric string to Decimal.

    Floats go through ``str`` so that binary artefacts such as
    ``0.1 + 0.2`` never reach the arithmetic.

    Raises:
        InvalidOperation: If the value is not numeric
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidOperation(f"Not a monetary value: {value!r}")
    return Decimal(str(value))


def round_money(amount: Decimal, quantum: Decimal = CENT) -> Decimal:
    """Round half-up to the currency's minor unit."""
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Return ``amount * rate / 100`` without rounding."""
    return amount * rate / HUNDRED


def ratio_percent(part: Decimal, whole: Decimal) -> float:
    """Return ``part / whole * 100`` as a float, 0 when whole is not positive."""
    if whole <= 0:
        return 0.0
    return float(part / whole * HUNDRED)
