"""Shared Decimal context and rounding helpers for rates and amounts."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation, getcontext, localcontext

ROUNDING_PRECISION = 28
CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


def get_decimal_context():
    """Return the shared Decimal context used for rate arithmetic."""

    context = getcontext().copy()
    context.prec = ROUNDING_PRECISION
    context.rounding = ROUND_HALF_EVEN
    return context


def normalize_currency(code: str) -> str:
    """Normalize a currency code to canonical uppercase form."""

    if code is None or not str(code).strip():
        raise ValueError("Currency code cannot be blank.")
    normalized = str(code).strip().upper()
    if not CURRENCY_CODE_PATTERN.match(normalized):
        raise ValueError(f"Currency code must be three letters: {code!r}")
    return normalized


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert input into a finite Decimal using the shared context."""

    context = get_decimal_context()
    with localcontext(context):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid decimal value: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Decimal value must be finite: {value!r}")
    return result


def quantize(value: Decimal, places: int) -> Decimal:
    """Round ``value`` to ``places`` fractional digits, half to even."""

    exponent = Decimal(1).scaleb(-places)
    context = get_decimal_context()
    with localcontext(context):
        return value.quantize(exponent, rounding=ROUND_HALF_EVEN)


def divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    context = get_decimal_context()
    with localcontext(context):
        return numerator / denominator


def multiply(left: Decimal, right: Decimal) -> Decimal:
    context = get_decimal_context()
    with localcontext(context):
        return left * right
