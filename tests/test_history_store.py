from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from currency_converter.services import (
    ConversionRecord,
    InMemoryConversionHistoryStore,
    SqlConversionHistoryStore,
    build_history_store,
)

START = datetime(2025, 10, 16, 9, 0, tzinfo=UTC)


def _record(from_code: str, minutes: int) -> ConversionRecord:
    return ConversionRecord(
        from_code=from_code,
        from_description=f"{from_code} description",
        to_code="INR",
        to_description="Indian rupee",
        original_amount=Decimal("10"),
        converted_amount=Decimal("826.3230"),
        converted_at=START + timedelta(minutes=minutes),
    )


@pytest.fixture(params=["sql", "memory"])
def history(request):
    if request.param == "sql":
        request.getfixturevalue("app")
        return SqlConversionHistoryStore()
    return InMemoryConversionHistoryStore()


def test_append_assigns_increasing_ids(history):
    first = history.append(_record("USD", 0))
    second = history.append(_record("EUR", 5))

    assert first.id is not None
    assert second.id > first.id


def test_query_orders_by_conversion_time(history):
    history.append(_record("USD", 10))
    history.append(_record("EUR", 0))

    records = history.query()

    assert [record.from_code for record in records] == ["EUR", "USD"]
    assert records[0].converted_at == START
    assert records[1].converted_amount == Decimal("826.3230")


def test_query_combines_filters_inclusively(history):
    history.append(_record("USD", 0))
    history.append(_record("USD", 30))
    history.append(_record("USD", 60))
    history.append(_record("EUR", 30))

    records = history.query(
        from_code="usd",
        start=START + timedelta(minutes=30),
        end=START + timedelta(minutes=60),
    )

    assert [(record.from_code, record.converted_at) for record in records] == [
        ("USD", START + timedelta(minutes=30)),
        ("USD", START + timedelta(minutes=60)),
    ]


def test_query_without_matches_is_empty(history):
    history.append(_record("USD", 0))

    assert history.query(from_code="GBP") == []
    assert history.query(end=START - timedelta(seconds=1)) == []


def test_build_history_store_follows_backend():
    assert build_history_store({"CONVERSION_LEDGER_ENABLED": False}) is None
    assert isinstance(
        build_history_store({"RATE_STORE_BACKEND": "database"}), SqlConversionHistoryStore
    )
    assert isinstance(
        build_history_store({"RATE_STORE_BACKEND": "file"}), InMemoryConversionHistoryStore
    )
