"""Mock feed source for testing and local development."""

from __future__ import annotations

from .base import BaseFeedSource

MOCK_FEED_XML = b"""<?xml version="1.0" encoding="utf-8"?>
<exchangerates type="Exchange rates" author="Danmarks Nationalbank" refcur="DKK" refamt="1">
  <dailyrates id="2025-10-16">
    <currency code="EUR" desc="Euro" rate="746.08" />
    <currency code="GBP" desc="Pound sterling" rate="857.44" />
    <currency code="INR" desc="Indian rupee" rate="7.75" />
    <currency code="JPY" desc="Japanese yen" rate="4.5180" />
    <currency code="SEK" desc="Swedish kronor" rate="68.02" />
    <currency code="USD" desc="US dollars" rate="640.40" />
  </dailyrates>
</exchangerates>
"""


class MockFeedSource(BaseFeedSource):
    """Deterministic source serving a fixed Nationalbank-shaped payload."""

    name = "mock"

    def __init__(self, payload: bytes = MOCK_FEED_XML) -> None:
        self._payload = payload

    def fetch(self) -> bytes:
        return self._payload
