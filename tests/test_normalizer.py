from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from currency_converter.services import RateNormalizer, RawRateEntry, ReferenceRateNotFoundError

AS_OF = datetime(2025, 10, 16, 12, 0, tzinfo=UTC)


def _entry(code: str, rate: str, description: str | None = None) -> RawRateEntry:
    return RawRateEntry(code=code, description=description or code, rate_vs_feed_base=Decimal(rate))


def _by_code(rates):
    return {rate.code: rate for rate in rates}


def test_normalize_rebases_on_reference_and_synthesizes_feed_base():
    normalizer = RateNormalizer(native_base="DKK", native_base_description="Danish Krone")
    raw = [_entry("USD", "6.404"), _entry("EUR", "7.4608"), _entry("INR", "0.0775")]

    rates = _by_code(normalizer.normalize(raw, "INR", as_of=AS_OF))

    assert rates["INR"].rate == Decimal("1.0000")
    assert rates["USD"].rate == Decimal("82.6323")
    assert rates["EUR"].rate == Decimal("96.2684")
    assert rates["DKK"].rate == Decimal("12.9032")
    assert rates["DKK"].description == "Danish Krone"
    assert {rate.as_of for rate in rates.values()} == {AS_OF}


def test_normalize_does_not_duplicate_feed_base_listed_in_feed():
    normalizer = RateNormalizer(native_base="DKK", native_base_description="Danish Krone")
    raw = [
        _entry("USD", "0.1355", "US dollars"),
        _entry("INR", "1.0", "Indian rupee"),
        _entry("DKK", "7.46", "Danish kroner"),
    ]

    rates = normalizer.normalize(raw, "INR", as_of=AS_OF)

    assert [rate.code for rate in rates] == ["USD", "INR", "DKK"]
    by_code = _by_code(rates)
    assert by_code["DKK"].rate == Decimal("7.4600")
    assert by_code["DKK"].description == "Danish kroner"
    assert by_code["USD"].rate == Decimal("0.1355")


def test_normalize_keeps_last_duplicate(caplog):
    normalizer = RateNormalizer()
    raw = [_entry("USD", "2"), _entry("INR", "1"), _entry("USD", "3")]

    with caplog.at_level(logging.WARNING):
        rates = _by_code(normalizer.normalize(raw, "INR", as_of=AS_OF))

    assert rates["USD"].rate == Decimal("3.0000")
    assert len(rates) == 2
    assert "Duplicate currency code USD" in caplog.text


def test_normalize_uses_one_when_reference_is_feed_base():
    normalizer = RateNormalizer(native_base="DKK", native_base_description="Danish Krone")
    raw = [_entry("USD", "6.404"), _entry("EUR", "7.4608")]

    rates = _by_code(normalizer.normalize(raw, "DKK", as_of=AS_OF))

    assert rates["USD"].rate == Decimal("6.4040")
    assert rates["DKK"].rate == Decimal("1.0000")


def test_normalize_raises_when_reference_missing():
    normalizer = RateNormalizer(native_base="DKK")

    with pytest.raises(ReferenceRateNotFoundError) as exc_info:
        normalizer.normalize([_entry("USD", "6.404")], "INR", as_of=AS_OF)

    assert exc_info.value.message == "INR rate not found in the exchange rates."


def test_normalize_rounds_half_even_at_configured_places():
    normalizer = RateNormalizer(places=2)
    raw = [_entry("INR", "1"), _entry("AAA", "0.125"), _entry("BBB", "0.135")]

    rates = _by_code(normalizer.normalize(raw, "INR", as_of=AS_OF))

    assert rates["AAA"].rate == Decimal("0.12")
    assert rates["BBB"].rate == Decimal("0.14")
    assert rates["INR"].rate == Decimal("1.00")


def test_normalize_drops_rates_that_round_to_zero():
    normalizer = RateNormalizer(places=2)
    raw = [_entry("INR", "1"), _entry("VND", "0.00004"), _entry("USD", "83")]

    rates = _by_code(normalizer.normalize(raw, "INR", as_of=AS_OF))

    assert "VND" not in rates
    assert set(rates) == {"INR", "USD"}


def test_normalize_stamps_batch_with_clock_in_utc():
    local = datetime(2025, 10, 16, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    normalizer = RateNormalizer(clock=lambda: local)

    rates = normalizer.normalize([_entry("INR", "1")], "inr")

    assert rates[0].as_of == AS_OF
    assert rates[0].as_of.tzinfo == UTC
