"""Conversion engine and the service façade used by the API layer."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import datetime
from decimal import Decimal, InvalidOperation

from currency_converter.utils.datetime import ensure_utc, utc_now

from .decimal_math import divide, multiply, normalize_currency, quantize
from .exceptions import (
    InvalidRangeError,
    InvalidRequestError,
    UnknownCurrencyCodeError,
)
from .history_store import ConversionHistoryStore
from .normalizer import DEFAULT_DECIMAL_PLACES
from .rate_store import RateStore
from .schemas import (
    CanonicalRate,
    ConversionRecord,
    ConversionRequest,
    ConversionResponse,
    RateLookup,
    SameCurrencyPolicy,
)

logger = logging.getLogger(__name__)

SAME_CURRENCY_DESCRIPTION = "Same currency conversion"


class ConversionEngine:
    """Convert amounts through the reference currency.

    ``converted = round(amount * from.rate / to.rate, places)`` where both
    rates are expressed in reference-currency units. ``places`` must match
    the precision the rates were normalized with.

    Same-currency requests follow exactly one :class:`SameCurrencyPolicy`:
    ``REJECT`` raises :class:`InvalidRequestError`, ``PASSTHROUGH`` returns
    the original amount without touching the rate set or the ledger.

    With a ``history`` store attached every successful conversion is
    appended before the response is returned; if the append fails the
    :class:`PersistenceError` propagates and no response is produced.
    """

    def __init__(
        self,
        *,
        places: int = DEFAULT_DECIMAL_PLACES,
        same_currency_policy: SameCurrencyPolicy | str = SameCurrencyPolicy.REJECT,
        history: ConversionHistoryStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._places = places
        self._policy = SameCurrencyPolicy(same_currency_policy)
        self._history = history
        self._clock = clock

    @property
    def policy(self) -> SameCurrencyPolicy:
        return self._policy

    @property
    def places(self) -> int:
        return self._places

    @property
    def ledger_enabled(self) -> bool:
        return self._history is not None

    def convert(
        self, request: ConversionRequest, rates: Iterable[CanonicalRate]
    ) -> ConversionResponse:
        if request.amount <= 0:
            raise InvalidRequestError("Amount must be greater than zero.")

        if request.from_code == request.to_code:
            return self._same_currency(request)

        lookup = _index(rates)
        from_rate = _find(lookup, request.from_code)
        to_rate = _find(lookup, request.to_code)

        try:
            base_amount = multiply(request.amount, from_rate.rate)
            converted = quantize(divide(base_amount, to_rate.rate), self._places)
        except InvalidOperation as exc:
            raise InvalidRequestError(
                f"Amount {request.amount} is too large to convert at {self._places} decimal places."
            ) from exc

        response = ConversionResponse(
            from_code=request.from_code,
            from_description=from_rate.description,
            to_code=request.to_code,
            to_description=to_rate.description,
            original_amount=request.amount,
            converted_amount=converted,
        )

        if self._history is not None:
            self._history.append(
                ConversionRecord(
                    from_code=response.from_code,
                    from_description=response.from_description,
                    to_code=response.to_code,
                    to_description=response.to_description,
                    original_amount=response.original_amount,
                    converted_amount=response.converted_amount,
                    converted_at=self._clock(),
                )
            )

        return response

    def get_rate(self, code: str, rates: Iterable[CanonicalRate]) -> CanonicalRate:
        return _find(_index(rates), normalize_currency(code))

    def _same_currency(self, request: ConversionRequest) -> ConversionResponse:
        if self._policy is SameCurrencyPolicy.REJECT:
            raise InvalidRequestError("FromCurrencyCode and ToCurrencyCode can't be same.")

        return ConversionResponse(
            from_code=request.from_code,
            from_description=SAME_CURRENCY_DESCRIPTION,
            to_code=request.to_code,
            to_description=SAME_CURRENCY_DESCRIPTION,
            original_amount=request.amount,
            converted_amount=request.amount,
        )


def _index(rates: Iterable[CanonicalRate]) -> dict[str, CanonicalRate]:
    return {rate.code: rate for rate in rates}


def _find(lookup: dict[str, CanonicalRate], code: str) -> CanonicalRate:
    try:
        return lookup[code]
    except KeyError as exc:
        raise UnknownCurrencyCodeError(code) from exc


class CurrencyService:
    """Entry point for rate queries, conversions and the conversion ledger."""

    def __init__(
        self,
        *,
        rate_store: RateStore,
        engine: ConversionEngine,
        reference_code: str,
        history: ConversionHistoryStore | None = None,
    ) -> None:
        self._rate_store = rate_store
        self._engine = engine
        self._reference_code = normalize_currency(reference_code)
        self._history = history

    @property
    def rate_store(self) -> RateStore:
        return self._rate_store

    @property
    def engine(self) -> ConversionEngine:
        return self._engine

    @property
    def reference_code(self) -> str:
        return self._reference_code

    @property
    def ledger_enabled(self) -> bool:
        return self._history is not None

    def list_rates(self) -> list[CanonicalRate]:
        """Stored rates sorted by code, presented at the configured precision."""

        places = self._engine.places
        return [
            replace(rate, rate=quantize(rate.rate, places))
            for rate in sorted(self._rate_store.load_all(), key=lambda rate: rate.code)
        ]

    def get_rate(self, code: str) -> RateLookup:
        rate = self._engine.get_rate(code, self._rate_store.load_all())
        return RateLookup(
            base_currency_code=rate.code,
            base_currency_amount=Decimal(1),
            converted_currency_code=self._reference_code,
            converted_currency_amount=quantize(rate.rate, self._engine.places),
        )

    def convert(self, request: ConversionRequest) -> ConversionResponse:
        logger.info(
            "Converting %s %s to %s", request.amount, request.from_code, request.to_code
        )
        # Load one snapshot so both legs use rates from the same refresh.
        response = self._engine.convert(request, self._rate_store.load_all())
        logger.info(
            "Conversion successful: %s %s = %s %s",
            response.original_amount,
            response.from_code,
            response.converted_amount,
            response.to_code,
        )
        return response

    def list_conversions(
        self,
        from_code: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Sequence[ConversionRecord]:
        start = ensure_utc(start) if start is not None else None
        end = ensure_utc(end) if end is not None else None
        if start is not None and end is not None and start > end:
            raise InvalidRangeError("Start date cannot be later than end date.")
        if self._history is None:
            raise InvalidRequestError("Conversion ledger is disabled.")
        return self._history.query(from_code=from_code, start=start, end=end)


def init_currency_service(app, store: RateStore) -> CurrencyService:
    """Create the currency service from app config and store it on the app."""

    from .history_store import build_history_store

    config = app.config
    history = build_history_store(config)
    engine = ConversionEngine(
        places=int(config.get("RATE_DECIMAL_PLACES", 4)),
        same_currency_policy=config.get("SAME_CURRENCY_POLICY", SameCurrencyPolicy.REJECT.value),
        history=history,
    )
    service = CurrencyService(
        rate_store=store,
        engine=engine,
        reference_code=config.get("REFERENCE_CURRENCY", "INR"),
        history=history,
    )
    app.extensions["currency_service"] = service
    return service
