"""Append-only ledger of successful conversions."""

from __future__ import annotations

import itertools
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime

from sqlalchemy import asc
from sqlalchemy.exc import SQLAlchemyError

from currency_converter.database import get_session
from currency_converter.models import CurrencyConversion
from currency_converter.utils.datetime import ensure_utc

from .exceptions import PersistenceError
from .schemas import ConversionRecord


class ConversionHistoryStore(ABC):
    """Stores conversion records and filters them by code and time range.

    Filters are optional and combined with AND; ``start`` and ``end`` are
    inclusive. Range validation is the caller's job.
    """

    @abstractmethod
    def append(self, record: ConversionRecord) -> ConversionRecord:
        """Persist ``record`` and return it with its generated id."""

    @abstractmethod
    def query(
        self,
        from_code: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ConversionRecord]:
        """Return matching records ordered by conversion time."""


class SqlConversionHistoryStore(ConversionHistoryStore):
    """Ledger backed by the ``currency_conversions`` table."""

    def append(self, record: ConversionRecord) -> ConversionRecord:
        session = get_session()
        row = CurrencyConversion(
            from_code=record.from_code,
            from_description=record.from_description,
            to_code=record.to_code,
            to_description=record.to_description,
            original_amount=record.original_amount,
            converted_amount=record.converted_amount,
            converted_at=record.converted_at,
        )
        session.add(row)
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Unable to record conversion: {exc}") from exc
        return replace(record, id=row.id)

    def query(
        self,
        from_code: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ConversionRecord]:
        session = get_session()
        query = session.query(CurrencyConversion)
        if from_code:
            query = query.filter(CurrencyConversion.from_code == from_code.strip().upper())
        if start is not None:
            query = query.filter(CurrencyConversion.converted_at >= ensure_utc(start))
        if end is not None:
            query = query.filter(CurrencyConversion.converted_at <= ensure_utc(end))

        try:
            rows = query.order_by(
                asc(CurrencyConversion.converted_at), asc(CurrencyConversion.id)
            ).all()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Unable to load stored conversions: {exc}") from exc
        return [_row_to_record(row) for row in rows]


def _row_to_record(row: CurrencyConversion) -> ConversionRecord:
    return ConversionRecord(
        id=row.id,
        from_code=row.from_code,
        from_description=row.from_description,
        to_code=row.to_code,
        to_description=row.to_description,
        original_amount=row.original_amount,
        converted_amount=row.converted_amount,
        converted_at=ensure_utc(row.converted_at),
    )


class InMemoryConversionHistoryStore(ConversionHistoryStore):
    """Process-local ledger used with the file backend and in tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[ConversionRecord] = []
        self._ids = itertools.count(1)

    def append(self, record: ConversionRecord) -> ConversionRecord:
        with self._lock:
            stored = replace(record, id=next(self._ids))
            self._records.append(stored)
        return stored

    def query(
        self,
        from_code: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ConversionRecord]:
        code = from_code.strip().upper() if from_code else None
        lower = ensure_utc(start) if start is not None else None
        upper = ensure_utc(end) if end is not None else None

        with self._lock:
            records = list(self._records)

        matches = [
            record
            for record in records
            if (code is None or record.from_code == code)
            and (lower is None or record.converted_at >= lower)
            and (upper is None or record.converted_at <= upper)
        ]
        matches.sort(key=lambda record: (record.converted_at, record.id or 0))
        return matches


def build_history_store(config) -> ConversionHistoryStore | None:
    """Create the conversion ledger, or ``None`` when the ledger is disabled.

    The relational ledger is used with the database rate store; the other
    backends keep the ledger in process memory.
    """

    if not config.get("CONVERSION_LEDGER_ENABLED", True):
        return None
    if str(config.get("RATE_STORE_BACKEND", "database")).lower() == "database":
        return SqlConversionHistoryStore()
    return InMemoryConversionHistoryStore()
