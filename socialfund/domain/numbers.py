"""Numeric coercion and rounding shared by the calculator and the services."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

_ZERO = Decimal("0")
_CENT = Decimal("0.01")


def to_decimal(value: Any, default: Decimal = _ZERO) -> Decimal:
    """Parse ``value`` into a ``Decimal``, returning ``default`` when it is unusable.

    Numbers and numeric strings are accepted; ``None``, booleans, blank or
    malformed strings and non-finite values fall back to ``default``.
    """

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    if isinstance(value, float):
        value = repr(value)
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    return parsed if parsed.is_finite() else default


def round_cents(value: Decimal) -> Decimal:
    """Round half-up to the nearest cent."""

    return value.quantize(_CENT, rounding=ROUND_HALF_UP)
