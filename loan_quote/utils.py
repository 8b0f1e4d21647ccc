"""Utility functions for the loan quotation toolkit.

Helpers for turning user input into ``Decimal`` values and for rounding money
according to the configured policy.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .config import CENT, MONEY_ROUNDING


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace. It raises
    ``ValueError`` if conversion fails or the value is not finite.
    """
    try:
        cleaned = value.replace(",", "").strip()
        result = Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def to_decimal(value) -> Decimal:
    """Coerce a ``Decimal``, ``int``, ``float`` or string into a ``Decimal``.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion. Booleans are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Invalid numeric value: {value}")
        return value
    return decimal_from_str(str(value))


def round_money(amount: Decimal) -> Decimal:
    """Quantize ``amount`` to the cent using the configured rounding mode."""
    return amount.quantize(CENT, rounding=MONEY_ROUNDING)
