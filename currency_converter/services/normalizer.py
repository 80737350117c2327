"""Re-base raw feed entries onto the reference currency."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Decimal

from currency_converter.utils.datetime import ensure_utc, utc_now

from .decimal_math import divide, normalize_currency, quantize
from .exceptions import ReferenceRateNotFoundError
from .schemas import CanonicalRate, RawRateEntry

logger = logging.getLogger(__name__)

DEFAULT_DECIMAL_PLACES = 4


class RateNormalizer:
    """Produce the canonical rate set for one refresh cycle.

    Every raw entry becomes ``raw / reference_raw`` rounded to ``places``
    digits, i.e. the number of reference units one unit of the currency
    buys. The feed's own base currency is implicit in the feed (it is the
    unit the raw rates are quoted in) so it is synthesized as
    ``1 / reference_raw`` unless the feed already lists it.
    """

    def __init__(
        self,
        *,
        native_base: str | None = None,
        native_base_description: str = "",
        places: int = DEFAULT_DECIMAL_PLACES,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._native_base = normalize_currency(native_base) if native_base else None
        self._native_base_description = native_base_description or (self._native_base or "")
        self._places = places
        self._clock = clock

    @property
    def places(self) -> int:
        return self._places

    def normalize(
        self,
        raw_entries: Iterable[RawRateEntry],
        reference_code: str,
        *,
        as_of: datetime | None = None,
    ) -> list[CanonicalRate]:
        reference = normalize_currency(reference_code)
        captured_at = ensure_utc(as_of) if as_of is not None else self._clock()

        by_code: dict[str, RawRateEntry] = {}
        for entry in raw_entries:
            if entry.code in by_code:
                logger.warning(
                    "Duplicate currency code %s in feed batch; keeping the last occurrence",
                    entry.code,
                )
                # Re-insert so the surviving entry keeps the position of the last occurrence.
                del by_code[entry.code]
            by_code[entry.code] = entry

        reference_raw = self._reference_rate(by_code, reference)

        rates: list[CanonicalRate] = []
        for code, entry in by_code.items():
            rate = quantize(divide(entry.rate_vs_feed_base, reference_raw), self._places)
            if rate <= 0:
                logger.warning(
                    "Dropping %s: rate %s rounds to zero at %s decimal places",
                    code,
                    entry.rate_vs_feed_base,
                    self._places,
                )
                continue
            rates.append(
                CanonicalRate(
                    code=code,
                    description=entry.description,
                    rate=rate,
                    as_of=captured_at,
                )
            )

        if self._native_base and self._native_base not in by_code:
            base_rate = quantize(divide(Decimal(1), reference_raw), self._places)
            if base_rate > 0:
                rates.append(
                    CanonicalRate(
                        code=self._native_base,
                        description=self._native_base_description,
                        rate=base_rate,
                        as_of=captured_at,
                    )
                )
            else:
                logger.warning(
                    "Dropping feed base %s: rate rounds to zero at %s decimal places",
                    self._native_base,
                    self._places,
                )

        logger.info(
            "Normalized %s rates against %s at %s",
            len(rates),
            reference,
            captured_at.isoformat(),
        )
        return rates

    def _reference_rate(self, by_code: dict[str, RawRateEntry], reference: str) -> Decimal:
        entry = by_code.get(reference)
        if entry is None:
            if reference == self._native_base:
                # The feed quotes everything in its base, so the base itself is 1.
                return Decimal(1)
            raise ReferenceRateNotFoundError(reference)
        if entry.rate_vs_feed_base <= 0:
            raise ReferenceRateNotFoundError(reference)
        return entry.rate_vs_feed_base
