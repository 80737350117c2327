"""Validation helpers for request payloads."""

from __future__ import annotations

from currency_converter.errors import ValidationError
from currency_converter.services.decimal_math import CURRENCY_CODE_PATTERN


def validate_currency_code(value: str | None, *, field: str = "currency_code") -> str:
    """Return the upper-cased code or raise a 400 for blank/malformed input."""

    if value is None or not str(value).strip():
        raise ValidationError("Currency code is required.", payload={"field": field})

    normalized = str(value).strip().upper()
    if not CURRENCY_CODE_PATTERN.match(normalized):
        raise ValidationError(
            f"Currency code '{value}' must be three letters, e.g. USD.",
            payload={"field": field, "code": str(value)},
        )
    return normalized
