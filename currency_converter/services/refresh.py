"""One refresh cycle: fetch the feed, normalize it, persist the result."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from time import perf_counter

from currency_converter.logging import feed_log_extra
from currency_converter.providers import BaseFeedSource, ProviderError
from currency_converter.utils.datetime import utc_now

from .exceptions import FeedUnavailableError
from .feed_parser import RateFeedParser
from .normalizer import RateNormalizer
from .rate_store import RateStore
from .schemas import CanonicalRate

logger = logging.getLogger(__name__)


class RefreshPhase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    PERSISTING = "persisting"


@dataclass
class RefreshStatus:
    """Outcome of the most recent refresh cycles."""

    phase: RefreshPhase = RefreshPhase.IDLE
    last_success: datetime | None = None
    last_failure: datetime | None = None
    last_error: str | None = None
    rate_count: int | None = None
    cycles: int = field(default=0)


class RateRefresher:
    """Run the fetch -> normalize -> persist pipeline, one cycle at a time.

    Scheduled and on-demand refreshes share one instance; the mutex makes a
    second concurrent caller wait for the running cycle and then run its own.
    Nothing is written unless the whole batch parsed and normalized, so a
    failed cycle leaves the previous snapshot in place. Errors propagate to
    the caller.
    """

    def __init__(
        self,
        *,
        source: BaseFeedSource,
        parser: RateFeedParser,
        normalizer: RateNormalizer,
        store: RateStore,
        reference_code: str,
    ) -> None:
        self._source = source
        self._parser = parser
        self._normalizer = normalizer
        self._store = store
        self._reference_code = reference_code
        self._lock = threading.Lock()
        self._status = RefreshStatus()

    @property
    def status(self) -> RefreshStatus:
        return self._status

    @property
    def source_name(self) -> str:
        return getattr(self._source, "name", self._source.__class__.__name__)

    def refresh(self) -> list[CanonicalRate]:
        with self._lock:
            start = perf_counter()
            self._status.cycles += 1
            try:
                rates = self._run_cycle()
            except Exception as exc:
                self._record_failure(exc, start)
                raise
            finally:
                self._status.phase = RefreshPhase.IDLE

            self._status.last_success = utc_now()
            self._status.last_error = None
            self._status.rate_count = len(rates)
            logger.info(
                "Refresh cycle completed",
                extra=feed_log_extra(
                    source=self.source_name,
                    reference=self._reference_code,
                    event="refresh.cycle",
                    status="success",
                    duration_ms=(perf_counter() - start) * 1000,
                    rate_count=len(rates),
                ),
            )
            return rates

    def _run_cycle(self) -> list[CanonicalRate]:
        self._status.phase = RefreshPhase.FETCHING
        payload = self._fetch()

        self._status.phase = RefreshPhase.NORMALIZING
        raw_entries = self._parser.parse(payload)
        rates = self._normalizer.normalize(raw_entries, self._reference_code)

        self._status.phase = RefreshPhase.PERSISTING
        self._store.replace_all(rates)
        return rates

    def _fetch(self) -> bytes:
        start = perf_counter()
        try:
            payload = self._source.fetch()
        except ProviderError as exc:
            raise FeedUnavailableError(f"Unable to fetch rates from {self.source_name}: {exc}") from exc
        logger.info(
            "Feed fetch succeeded",
            extra=feed_log_extra(
                source=self.source_name,
                reference=self._reference_code,
                event="feed.fetch",
                status="success",
                duration_ms=(perf_counter() - start) * 1000,
            ),
        )
        return payload

    def _record_failure(self, exc: Exception, start: float) -> None:
        failed_phase = self._status.phase
        self._status.last_failure = utc_now()
        self._status.last_error = str(exc)
        logger.error(
            "Refresh cycle failed during %s: %s",
            failed_phase.value,
            exc,
            extra=feed_log_extra(
                source=self.source_name,
                reference=self._reference_code,
                event="refresh.cycle",
                status="error",
                phase=failed_phase.value,
                duration_ms=(perf_counter() - start) * 1000,
                error=str(exc),
            ),
        )


def init_refresher(app, store: RateStore) -> RateRefresher:
    """Create the shared refresher and store it on the Flask app."""

    from currency_converter.providers.registry import init_source

    source = app.extensions.get("rate_feed_source") or init_source(app)
    config = app.config
    refresher = RateRefresher(
        source=source,
        parser=RateFeedParser(quote_units=int(config.get("FEED_QUOTE_UNITS", 1))),
        normalizer=RateNormalizer(
            native_base=config.get("FEED_NATIVE_BASE"),
            native_base_description=config.get("FEED_NATIVE_BASE_DESCRIPTION", ""),
            places=int(config.get("RATE_DECIMAL_PLACES", 4)),
        ),
        store=store,
        reference_code=config.get("REFERENCE_CURRENCY", "INR"),
    )
    app.extensions["rate_refresher"] = refresher
    return refresher
