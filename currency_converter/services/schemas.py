"""Dataclasses describing rate entries, conversions and ledger records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from currency_converter.utils.datetime import ensure_utc

from .decimal_math import normalize_currency, to_decimal


class SameCurrencyPolicy(str, Enum):
    """What the conversion engine does when both codes are equal."""

    REJECT = "reject"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class RawRateEntry:
    """A single currency line read from the external feed."""

    code: str
    description: str
    rate_vs_feed_base: Decimal


@dataclass(frozen=True)
class CanonicalRate:
    """Value of one unit of ``code`` expressed in reference-currency units."""

    code: str
    description: str
    rate: Decimal
    as_of: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", normalize_currency(self.code))
        rate = to_decimal(self.rate)
        if rate <= 0:
            raise ValueError(f"Rate for {self.code} must be positive, got {rate}")
        object.__setattr__(self, "rate", rate)
        object.__setattr__(self, "as_of", ensure_utc(self.as_of))


@dataclass(frozen=True)
class ConversionRequest:
    """Validated request to convert ``amount`` of one currency into another."""

    from_code: str
    to_code: str
    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "from_code", normalize_currency(self.from_code))
        object.__setattr__(self, "to_code", normalize_currency(self.to_code))
        object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass(frozen=True)
class ConversionResponse:
    from_code: str
    from_description: str
    to_code: str
    to_description: str
    original_amount: Decimal
    converted_amount: Decimal


@dataclass(frozen=True)
class RateLookup:
    """How many reference-currency units one unit of ``code`` buys."""

    base_currency_code: str
    base_currency_amount: Decimal
    converted_currency_code: str
    converted_currency_amount: Decimal


@dataclass(frozen=True)
class ConversionRecord:
    """Append-only ledger row; ``id`` is assigned by the history store."""

    from_code: str
    from_description: str
    to_code: str
    to_description: str
    original_amount: Decimal
    converted_amount: Decimal
    converted_at: datetime
    id: Optional[int] = field(default=None)

    def __post_init__(self) -> None:
        object.__setattr__(self, "converted_at", ensure_utc(self.converted_at))
