"""Scheduler setup for periodic rate refresh."""

from __future__ import annotations

import atexit
import logging
from datetime import timedelta
from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Flask

from currency_converter.utils.datetime import utc_now

logger = logging.getLogger(__name__)

SCHEDULER_EXT_KEY = "rate_refresh_scheduler"
JOB_ID = "refresh_rates"
DEFAULT_INTERVAL_MINUTES = 60


class RateRefreshScheduler:
    """Run a refresh callable on a fixed interval until stopped.

    The first cycle runs immediately. A cycle that raises is logged and
    skipped; the next tick runs as usual. ``stop`` wakes the scheduler
    thread instead of waiting out the interval.
    """

    def __init__(
        self,
        refresh: Callable[[], Any],
        *,
        interval: timedelta = timedelta(minutes=DEFAULT_INTERVAL_MINUTES),
        timezone: str = "UTC",
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self._refresh = refresh
        self._interval = interval
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone)

    @property
    def running(self) -> bool:
        return bool(getattr(self._scheduler, "running", False))

    @property
    def interval(self) -> timedelta:
        return self._interval

    def start(self) -> None:
        if self.running:
            return
        self._scheduler.add_job(
            self.run_cycle,
            trigger=IntervalTrigger(seconds=self._interval.total_seconds()),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=utc_now(),
        )
        self._scheduler.start()
        logger.info(
            "Rate refresh scheduler started with a %s minute interval",
            self._interval.total_seconds() / 60,
        )

    def stop(self) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        logger.info("Rate refresh scheduler stopped.")

    def run_cycle(self) -> bool:
        """Run one refresh; return whether it succeeded."""

        try:
            self._refresh()
        except Exception:
            # Previous snapshot stays authoritative until the next tick.
            logger.exception("Scheduled rate refresh failed; retrying on next tick.")
            return False
        return True


def _app_refresh(app: Flask) -> Callable[[], Any]:
    def _refresh() -> Any:
        with app.app_context():
            refresher = app.extensions.get("rate_refresher")
            if refresher is None:
                logger.warning("No rate refresher configured; skipping scheduled refresh.")
                return None
            return refresher.refresh()

    return _refresh


def init_scheduler(app: Flask) -> RateRefreshScheduler | None:
    """Start the periodic refresh job if enabled."""

    if not app.config.get("SCHEDULER_ENABLED", True):
        logger.info("Scheduler disabled via configuration.")
        return None

    existing = app.extensions.get(SCHEDULER_EXT_KEY)
    if existing is not None:
        return existing

    minutes = int(app.config.get("RATES_REFRESH_INTERVAL_MINUTES", DEFAULT_INTERVAL_MINUTES))
    scheduler = RateRefreshScheduler(
        _app_refresh(app),
        interval=timedelta(minutes=minutes),
        timezone=app.config.get("SCHEDULER_TIMEZONE", "UTC"),
    )
    scheduler.start()
    app.extensions[SCHEDULER_EXT_KEY] = scheduler
    atexit.register(scheduler.stop)
    return scheduler
