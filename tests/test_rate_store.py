from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import text

from currency_converter.database import get_session
from currency_converter.services import (
    CanonicalRate,
    InMemoryRateStore,
    JsonFileRateStore,
    PersistenceError,
    SqlRateStore,
    build_rate_store,
)

LATER = datetime(2025, 10, 17, 12, 0, tzinfo=UTC)


def test_sql_store_replace_all_then_load(app, canonical_rates):
    store = SqlRateStore()
    store.replace_all(canonical_rates)

    loaded = store.load_all()

    assert [rate.code for rate in loaded] == ["DKK", "EUR", "INR", "USD"]
    usd = store.get("usd")
    assert usd is not None
    assert usd.rate == Decimal("82.6323")
    assert usd.as_of.tzinfo is not None
    assert store.get("XYZ") is None


def test_sql_store_upsert_keeps_one_row_per_code(app, canonical_rates):
    store = SqlRateStore()
    store.replace_all(canonical_rates)

    store.upsert(CanonicalRate(code="USD", description="Dollar", rate=Decimal("83.1"), as_of=LATER))

    session = get_session()
    count = session.execute(
        text("SELECT COUNT(*) FROM currency_rates WHERE code = 'USD'")
    ).scalar_one()
    assert count == 1
    usd = store.get("USD")
    assert usd.rate == Decimal("83.1")
    assert usd.as_of == LATER
    assert usd.description == "US dollars"


def test_sql_store_replace_all_keeps_codes_missing_from_batch(app, canonical_rates):
    store = SqlRateStore()
    store.replace_all(canonical_rates)

    store.replace_all(
        [CanonicalRate(code="INR", description="Indian rupee", rate=Decimal("1"), as_of=LATER)]
    )

    assert {rate.code for rate in store.load_all()} == {"DKK", "EUR", "INR", "USD"}
    assert store.get("INR").as_of == LATER


def test_sql_store_normalizes_timestamps_to_utc(app):
    local = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=3)))
    store = SqlRateStore()

    store.upsert(CanonicalRate(code="EUR", description="Euro", rate=Decimal("90"), as_of=local))

    assert store.get("EUR").as_of == local.astimezone(UTC)


def test_memory_store_swaps_whole_snapshot(canonical_rates):
    store = InMemoryRateStore(canonical_rates)
    before = store.load_all()

    store.replace_all(canonical_rates[:1])

    assert [rate.code for rate in store.load_all()] == ["INR"]
    assert len(before) == 4


def test_json_store_writes_records_and_reloads(tmp_path, canonical_rates):
    path = tmp_path / "shared" / "currency_rates.json"
    store = JsonFileRateStore(path)

    store.replace_all(canonical_rates)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload[1] == {
        "currency_code": "USD",
        "currency_desc": "US dollars",
        "rate": "82.6323",
        "date_time": "2025-10-16T12:00:00+00:00",
    }
    reloaded = JsonFileRateStore(path)
    assert reloaded.load_all() == store.load_all()
    assert list(path.parent.iterdir()) == [path]


def test_json_store_upsert_merges_into_snapshot(tmp_path, canonical_rates):
    path = tmp_path / "rates.json"
    store = JsonFileRateStore(path)
    store.replace_all(canonical_rates)

    store.upsert(CanonicalRate(code="GBP", description="Pound", rate=Decimal("110"), as_of=LATER))

    codes = [record["currency_code"] for record in json.loads(path.read_text(encoding="utf-8"))]
    assert codes == ["INR", "USD", "EUR", "DKK", "GBP"]


def test_json_store_failed_write_leaves_snapshot_untouched(tmp_path, monkeypatch, canonical_rates):
    path = tmp_path / "rates.json"
    store = JsonFileRateStore(path)
    store.replace_all(canonical_rates)
    original = path.read_text(encoding="utf-8")

    def _fail(*_args, **_kwargs):
        raise OSError("read-only file system")

    monkeypatch.setattr("currency_converter.services.rate_store.os.replace", _fail)

    with pytest.raises(PersistenceError):
        store.replace_all(canonical_rates[:1])

    assert path.read_text(encoding="utf-8") == original
    assert len(store.load_all()) == 4
    assert list(tmp_path.iterdir()) == [path]


def test_json_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "rates.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        JsonFileRateStore(path)


def test_build_rate_store_selects_backend(tmp_path):
    assert isinstance(build_rate_store({"RATE_STORE_BACKEND": "memory"}), InMemoryRateStore)
    assert isinstance(build_rate_store({"RATE_STORE_BACKEND": "database"}), SqlRateStore)
    store = build_rate_store(
        {"RATE_STORE_BACKEND": "file", "RATES_FILE_PATH": str(tmp_path / "rates.json")}
    )
    assert isinstance(store, JsonFileRateStore)
    with pytest.raises(ValueError):
        build_rate_store({"RATE_STORE_BACKEND": "redis"})
