"""Tests for the cron scheduler."""

from __future__ import annotations

from datetime import datetime, timezone
import threading

import pytest

from tech_digest.scheduler import CronScheduler


def _fixed_clock(now: datetime):
    return lambda tz: now


def test_next_run_daily_at_nine():
    scheduler = CronScheduler("0 9 * * *", lambda: None)
    after = datetime(2026, 10, 18, 8, 15, tzinfo=timezone.utc)
    assert scheduler.next_run(after) == datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


def test_next_run_rolls_to_next_day():
    scheduler = CronScheduler("0 9 * * *", lambda: None)
    after = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
    assert scheduler.next_run(after) == datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def test_next_run_uses_clock_by_default():
    now = datetime(2026, 10, 18, 23, 59, tzinfo=timezone.utc)
    scheduler = CronScheduler("*/5 * * * *", lambda: None, clock=_fixed_clock(now))
    assert scheduler.next_run() == datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("expr", ["every day", "61 9 * * *"])
def test_invalid_cron_rejected(expr):
    with pytest.raises(ValueError, match="Invalid cron expression"):
        CronScheduler(expr, lambda: None)


def test_fire_logs_and_swallows_job_errors(caplog):
    def job():
        raise RuntimeError("boom")

    scheduler = CronScheduler("0 9 * * *", job)
    with caplog.at_level("ERROR", logger="tech_digest.scheduler"):
        scheduler._fire()
    assert "Scheduled job failed" in caplog.text


def test_stop_interrupts_wait():
    ran = threading.Event()
    # Next occurrence is roughly a day away, so only stop() can end the loop.
    now = datetime(2026, 10, 18, 9, 0, 1, tzinfo=timezone.utc)
    scheduler = CronScheduler("0 9 * * *", ran.set, clock=_fixed_clock(now))

    scheduler.start()
    scheduler.stop(timeout=2)

    assert not scheduler._thread.is_alive()
    assert not ran.is_set()


def test_job_fires_when_occurrence_is_due():
    fired = threading.Event()
    # The clock always reports an instant just before the minute boundary.
    now = datetime(2026, 10, 18, 8, 59, 59, 950000, tzinfo=timezone.utc)
    scheduler = CronScheduler("* * * * *", fired.set, clock=_fixed_clock(now))

    scheduler.start()
    try:
        assert fired.wait(2)
    finally:
        scheduler.stop(timeout=2)
