"""Parser for the Danmarks Nationalbank currency rate XML feed.

The feed looks like::

    <exchangerates type="Exchange rates" author="Danmarks Nationalbank" refcur="DKK" refamt="1">
      <dailyrates id="2025-10-16">
        <currency code="USD" desc="US dollars" rate="683.40" />
        ...
      </dailyrates>
    </exchangerates>

Each ``rate`` is the price in the feed's own base currency of ``quote_units``
units of ``code`` (the Nationalbank quotes per 100 units).
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from decimal import Decimal

from .decimal_math import CURRENCY_CODE_PATTERN, divide, to_decimal
from .exceptions import MalformedFeedError
from .schemas import RawRateEntry

logger = logging.getLogger(__name__)

CURRENCY_ELEMENT = "currency"
REQUIRED_ATTRIBUTES = ("code", "desc", "rate")
# Invariant format only: digits with an optional "." fraction, no grouping or exponent.
_RATE_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)?$")


class RateFeedParser:
    """Turn a raw feed payload into :class:`RawRateEntry` values."""

    def __init__(self, quote_units: int | Decimal = 1) -> None:
        units = Decimal(quote_units)
        if units <= 0:
            raise ValueError("quote_units must be positive")
        self._quote_units = units

    def parse(self, payload: bytes | str) -> list[RawRateEntry]:
        if payload is None or (isinstance(payload, (bytes, str)) and not payload.strip()):
            raise MalformedFeedError("Feed payload is empty.")

        try:
            root = ET.fromstring(payload)
        except ET.ParseError as exc:
            raise MalformedFeedError(f"Feed payload is not well-formed XML: {exc}") from exc

        entries = [self._parse_element(element) for element in root.iter(CURRENCY_ELEMENT)]
        if not entries:
            raise MalformedFeedError("Feed payload contains no currency entries.")

        logger.debug("Parsed %s currency entries from feed", len(entries))
        return entries

    def _parse_element(self, element: ET.Element) -> RawRateEntry:
        values: dict[str, str] = {}
        for attribute in REQUIRED_ATTRIBUTES:
            value = element.get(attribute)
            if value is None or not value.strip():
                raise MalformedFeedError(
                    f"Currency entry is missing required attribute '{attribute}': {element.attrib}"
                )
            values[attribute] = value.strip()

        code = values["code"].upper()
        if not CURRENCY_CODE_PATTERN.match(code):
            raise MalformedFeedError(f"Invalid currency code in feed: {values['code']!r}")

        return RawRateEntry(
            code=code,
            description=values["desc"],
            rate_vs_feed_base=self._parse_rate(code, values["rate"]),
        )

    def _parse_rate(self, code: str, raw: str) -> Decimal:
        if not _RATE_PATTERN.match(raw):
            raise MalformedFeedError(f"Invalid rate {raw!r} for currency {code}")
        rate = to_decimal(raw)
        if rate == 0:
            raise MalformedFeedError(f"Rate for currency {code} must be non-zero")
        if self._quote_units == 1:
            return rate
        return divide(rate, self._quote_units)
