"""Persistence of the canonical rate set.

Two backing strategies share the :class:`RateStore` interface: a relational
table upserted per currency code, and a JSON snapshot file rewritten whole on
every refresh. Readers of either only ever see a fully written batch.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from currency_converter.database import get_session
from currency_converter.models import CurrencyRate
from currency_converter.utils.datetime import ensure_utc

from .decimal_math import normalize_currency
from .exceptions import PersistenceError
from .schemas import CanonicalRate

logger = logging.getLogger(__name__)


class RateStore(ABC):
    """Defines the interface every rate store must implement."""

    name: str

    @abstractmethod
    def load_all(self) -> list[CanonicalRate]:
        """Return the current snapshot; empty if nothing is persisted yet."""

    @abstractmethod
    def upsert(self, rate: CanonicalRate) -> None:
        """Insert the rate or overwrite rate and timestamp of the same code."""

    @abstractmethod
    def replace_all(self, rates: Iterable[CanonicalRate]) -> None:
        """Atomically persist a whole normalized batch."""

    def get(self, code: str) -> CanonicalRate | None:
        normalized = normalize_currency(code)
        for rate in self.load_all():
            if rate.code == normalized:
                return rate
        return None


class SqlRateStore(RateStore):
    """Rate store backed by the ``currency_rates`` table.

    ``replace_all`` upserts the batch inside a single transaction, so codes
    missing from a batch keep their previous row.
    """

    name = "database"

    def load_all(self) -> list[CanonicalRate]:
        session = get_session()
        try:
            rows = session.execute(select(CurrencyRate).order_by(CurrencyRate.code)).scalars().all()
            return [_row_to_rate(row) for row in rows]
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Unable to load currency rates: {exc}") from exc

    def get(self, code: str) -> CanonicalRate | None:
        session = get_session()
        try:
            row = session.execute(
                select(CurrencyRate).filter_by(code=normalize_currency(code))
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Unable to load currency rate: {exc}") from exc
        return _row_to_rate(row) if row is not None else None

    def upsert(self, rate: CanonicalRate) -> None:
        self._write([rate])

    def replace_all(self, rates: Iterable[CanonicalRate]) -> None:
        self._write(list(rates))

    def _write(self, rates: Sequence[CanonicalRate]) -> None:
        session = get_session()
        try:
            for rate in rates:
                _upsert_row(session, rate)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Unable to persist currency rates: {exc}") from exc
        logger.info("Persisted %s currency rates to the database", len(rates))


def _upsert_row(session, rate: CanonicalRate) -> None:
    existing = session.query(CurrencyRate).filter_by(code=rate.code).one_or_none()
    if existing:
        existing.rate = rate.rate
        existing.as_of = rate.as_of
    else:
        session.add(
            CurrencyRate(
                code=rate.code,
                description=rate.description,
                rate=rate.rate,
                as_of=rate.as_of,
            )
        )


def _row_to_rate(row: CurrencyRate) -> CanonicalRate:
    return CanonicalRate(
        code=row.code,
        description=row.description,
        rate=row.rate,
        as_of=ensure_utc(row.as_of),
    )


class InMemoryRateStore(RateStore):
    """Holds the canonical set as an immutable snapshot swapped under a lock."""

    name = "memory"

    def __init__(self, rates: Iterable[CanonicalRate] = ()) -> None:
        self._lock = threading.Lock()
        self._snapshot: tuple[CanonicalRate, ...] = tuple(_dedupe(rates))

    def load_all(self) -> list[CanonicalRate]:
        # Snapshot tuples are never mutated, so reading the reference is enough.
        return list(self._snapshot)

    def upsert(self, rate: CanonicalRate) -> None:
        with self._lock:
            self._swap(_merge(self._snapshot, [rate]))

    def replace_all(self, rates: Iterable[CanonicalRate]) -> None:
        with self._lock:
            self._swap(tuple(_dedupe(rates)))

    def _swap(self, snapshot: tuple[CanonicalRate, ...]) -> None:
        self._snapshot = snapshot


class JsonFileRateStore(InMemoryRateStore):
    """Snapshot store persisted as a JSON array of rate records.

    The file is written to a temporary sibling and moved into place with
    ``os.replace``; the in-memory snapshot is swapped only after the move
    succeeds, so a failed write leaves both the file and readers untouched.
    """

    name = "file"

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        super().__init__(self._read_file())

    @property
    def path(self) -> Path:
        return self._path

    def _swap(self, snapshot: tuple[CanonicalRate, ...]) -> None:
        self._write_file(snapshot)
        super()._swap(snapshot)
        logger.info("Wrote %s currency rates to %s", len(snapshot), self._path)

    def _read_file(self) -> list[CanonicalRate]:
        if not self._path.exists():
            return []
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
            return [_record_to_rate(item) for item in payload]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise PersistenceError(f"Unable to read rate snapshot {self._path}: {exc}") from exc

    def _write_file(self, snapshot: Sequence[CanonicalRate]) -> None:
        payload = [_rate_to_record(rate) for rate in snapshot]
        temp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_name = handle.name
                json.dump(payload, handle, indent=2)
            os.replace(temp_name, self._path)
        except OSError as exc:
            if temp_name is not None and os.path.exists(temp_name):
                os.unlink(temp_name)
            raise PersistenceError(f"Unable to write rate snapshot {self._path}: {exc}") from exc


def _rate_to_record(rate: CanonicalRate) -> dict[str, str]:
    return {
        "currency_code": rate.code,
        "currency_desc": rate.description,
        "rate": str(rate.rate),
        "date_time": rate.as_of.isoformat(),
    }


def _record_to_rate(record: dict[str, str]) -> CanonicalRate:
    return CanonicalRate(
        code=record["currency_code"],
        description=record["currency_desc"],
        rate=Decimal(record["rate"]),
        as_of=datetime.fromisoformat(record["date_time"]),
    )


def _dedupe(rates: Iterable[CanonicalRate]) -> list[CanonicalRate]:
    by_code: dict[str, CanonicalRate] = {}
    for rate in rates:
        by_code[rate.code] = rate
    return list(by_code.values())


def _merge(
    snapshot: Sequence[CanonicalRate], updates: Iterable[CanonicalRate]
) -> tuple[CanonicalRate, ...]:
    by_code = {rate.code: rate for rate in snapshot}
    for rate in updates:
        current = by_code.get(rate.code)
        if current is None:
            by_code[rate.code] = rate
        else:
            by_code[rate.code] = CanonicalRate(
                code=rate.code,
                description=current.description,
                rate=rate.rate,
                as_of=rate.as_of,
            )
    return tuple(by_code.values())


def build_rate_store(config) -> RateStore:
    """Create the rate store selected by ``RATE_STORE_BACKEND``."""

    backend = str(config.get("RATE_STORE_BACKEND", "database")).lower()
    if backend == SqlRateStore.name:
        return SqlRateStore()
    if backend == JsonFileRateStore.name:
        return JsonFileRateStore(config.get("RATES_FILE_PATH", "shared/currency_rates.json"))
    if backend == InMemoryRateStore.name:
        return InMemoryRateStore()
    raise ValueError(f"Unsupported RATE_STORE_BACKEND '{backend}'")
