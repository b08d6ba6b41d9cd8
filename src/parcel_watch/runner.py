"""Scheduled runner - invokes the pipeline on a fixed interval."""

import asyncio
import logging
import signal
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

from parcel_watch.config import Settings
from parcel_watch.models import RunReport
from parcel_watch.pipeline import run_once

logger = logging.getLogger(__name__)

RunFn = Callable[[Settings], Awaitable[RunReport]]


def next_run_after(now: datetime, interval_hours: int) -> datetime:
    """First interval boundary (counted from midnight) strictly after ``now``."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    slot = now.hour // interval_hours + 1
    return midnight + timedelta(hours=slot * interval_hours)


class ScheduledRunner:
    """Runs the pipeline every ``run_interval_hours`` until shutdown.

    Runs are serialized: the next one is only scheduled after the current
    one has returned.
    """

    def __init__(self, settings: Settings, run: RunFn = run_once) -> None:
        self.settings = settings
        self._run = run
        self._shutdown = False
        self.runs = 0

    async def run(self) -> None:
        """Main loop - wait for the next slot and run until shutdown."""
        logger.info(
            "Scheduler starting, running every %d hours", self.settings.run_interval_hours
        )
        self._setup_signal_handlers()

        if self.settings.run_on_start:
            await self._run_pipeline()

        while not self._shutdown:
            due = next_run_after(datetime.now(UTC), self.settings.run_interval_hours)
            logger.info("Next run at %s", due.isoformat())
            await self._sleep_until(due)
            if self._shutdown:
                break
            await self._run_pipeline()

        logger.info("Scheduler stopped")

    def _setup_signal_handlers(self) -> None:
        """Set up graceful shutdown on SIGINT/SIGTERM."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_shutdown)

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        self._shutdown = True

    async def _sleep_until(self, due: datetime, step: float = 1.0) -> None:
        """Sleep in short steps so a shutdown signal is noticed promptly."""
        while not self._shutdown:
            remaining = (due - datetime.now(UTC)).total_seconds()
            if remaining <= 0:
                return
            await asyncio.sleep(min(step, remaining))

    async def _run_pipeline(self) -> None:
        logger.info("Go!")
        try:
            await self._run(self.settings)
        except Exception:
            # The next run starts again from the last persisted snapshot
            logger.exception("Pipeline run failed")
        self.runs += 1
