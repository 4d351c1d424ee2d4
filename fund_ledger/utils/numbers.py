"""
Decimal helpers for money and share quantities.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from fund_ledger.core.errors import ValidationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# Accepted magnitude for caller-supplied amounts, prices and share counts.
# Anything outside would not survive the JSON float round trip.
MAX_QUANTITY = Decimal("1e15")
MIN_QUANTITY = Decimal("1e-8")


def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse numbers and numeric strings into a finite Decimal.

    Returns None for anything that is not a finite number (None, booleans,
    blank or malformed strings, NaN, infinity).
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            # str() keeps the shortest repr, so 0.1 stays 0.1
            result = Decimal(str(value))
        elif isinstance(value, (int, str)):
            text = str(value).strip()
            if not text:
                return None
            result = Decimal(text)
        else:
            return None
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def parse_quantity(value: Any) -> Optional[Decimal]:
    """
    Parse a caller-supplied magnitude (amount, price, share count).

    Like parse_decimal, but also returns None when the non-zero magnitude
    falls outside [MIN_QUANTITY, MAX_QUANTITY].
    """
    result = parse_decimal(value)
    if result is None or result.is_zero():
        return result
    if not MIN_QUANTITY <= abs(result) <= MAX_QUANTITY:
        return None
    return result


def to_float(value: Optional[Decimal]) -> Optional[float]:
    """Decimal → JSON-friendly float (None passes through)."""
    if value is None:
        return None
    result = float(value)
    if not math.isfinite(result) or (result == 0.0 and not value.is_zero()):
        raise ValidationError("Value is out of range")
    return result


def round_display(value: Decimal) -> float:
    """Two-decimal rounding used for display values."""
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))
