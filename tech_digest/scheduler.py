"""Cron-driven background scheduler for pipeline ticks."""

from __future__ import annotations

from datetime import datetime, tzinfo
import logging
import threading
from typing import Callable
from zoneinfo import ZoneInfo

from croniter import croniter

logger = logging.getLogger(__name__)


class CronScheduler:
    """Invoke a job on every occurrence of a cron expression.

    The wait between occurrences is an Event wait, so stop() interrupts it
    immediately. A job that is already running is left to finish.

    Args:
        cron_expr: Five-field cron expression (e.g., "0 9 * * *")
        job: Callable invoked on each occurrence; exceptions are logged
        timezone: Optional IANA timezone name; None uses local time
        clock: Returns "now"; injectable for tests
    """

    def __init__(
        self,
        cron_expr: str,
        job: Callable[[], object],
        timezone: str | None = None,
        clock: Callable[[tzinfo | None], datetime] | None = None,
    ) -> None:
        if not croniter.is_valid(cron_expr):
            raise ValueError(f"Invalid cron expression: {cron_expr!r}")
        self.cron_expr = cron_expr
        self.job = job
        self.tz = ZoneInfo(timezone) if timezone else None
        self._clock = clock or (lambda tz: datetime.now(tz).astimezone(tz))
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def next_run(self, after: datetime | None = None) -> datetime:
        base = after or self._clock(self.tz)
        return croniter(self.cron_expr, base).get_next(datetime)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run_forever, name="tech-digest-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def run_forever(self) -> None:
        logger.info("Scheduler started | cron=%s", self.cron_expr)
        while not self._stop.is_set():
            now = self._clock(self.tz)
            target = self.next_run(now)
            delay = max(0.0, (target - now).total_seconds())
            logger.debug("Next run at %s (in %.0fs)", target.isoformat(), delay)
            if self._stop.wait(delay):
                break
            self._fire()
        logger.info("Scheduler stopped")

    def _fire(self) -> None:
        try:
            self.job()
        except Exception:  # noqa: BLE001
            logger.exception("Scheduled job failed")
