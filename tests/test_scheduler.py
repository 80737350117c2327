from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

from currency_converter.services import RateRefreshScheduler, init_scheduler
from currency_converter.services.scheduler import JOB_ID, SCHEDULER_EXT_KEY


def _fake_scheduler(running: bool = False) -> MagicMock:
    scheduler = MagicMock()
    scheduler.running = running
    return scheduler


def test_start_registers_single_interval_job():
    backend = _fake_scheduler()
    scheduler = RateRefreshScheduler(
        lambda: None, interval=timedelta(minutes=15), scheduler=backend
    )

    scheduler.start()

    backend.add_job.assert_called_once()
    kwargs = backend.add_job.call_args.kwargs
    assert kwargs["id"] == JOB_ID
    assert kwargs["max_instances"] == 1
    assert kwargs["coalesce"] is True
    assert kwargs["next_run_time"] is not None
    assert kwargs["trigger"].interval == timedelta(minutes=15)
    backend.start.assert_called_once()


def test_start_is_noop_when_already_running():
    backend = _fake_scheduler(running=True)

    RateRefreshScheduler(lambda: None, scheduler=backend).start()

    backend.add_job.assert_not_called()


def test_stop_shuts_down_without_waiting():
    backend = _fake_scheduler(running=True)

    RateRefreshScheduler(lambda: None, scheduler=backend).stop()

    backend.shutdown.assert_called_once_with(wait=False)


def test_run_cycle_swallows_refresh_errors():
    refresh = MagicMock(side_effect=RuntimeError("feed down"))
    scheduler = RateRefreshScheduler(refresh, scheduler=_fake_scheduler())

    assert scheduler.run_cycle() is False
    refresh.side_effect = None
    assert scheduler.run_cycle() is True
    assert refresh.call_count == 2


def test_init_scheduler_disabled_by_config(app):
    assert app.config["SCHEDULER_ENABLED"] is False
    assert init_scheduler(app) is None
    assert SCHEDULER_EXT_KEY not in app.extensions
