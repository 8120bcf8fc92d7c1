"""Background silent checks — runs ``check_silently()`` at a fixed interval.

A simple asyncio loop; each run happens in a worker thread so the event loop
(and the API served next to it) never blocks on a slow check.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .models import AggregateHealth
from .service import HealthService

logger = logging.getLogger(__name__)


class HealthScheduler:
    """Periodically triggers silent health checks for notification purposes."""

    def __init__(
        self,
        service: HealthService,
        interval_seconds: float = 60,
        on_run: Callable[[AggregateHealth], Any] | None = None,
    ) -> None:
        self.service = service
        self.interval_seconds = interval_seconds
        self.on_run = on_run
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="health-scheduler")
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="health-scheduler")
        logger.info("Health scheduler started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        self._executor.shutdown(wait=False)
        logger.info("Health scheduler stopped")

    async def run_once(self) -> AggregateHealth:
        """Run a silent check now (manual trigger / startup)."""
        loop = asyncio.get_running_loop()
        health = await loop.run_in_executor(self._executor, self.service.check_silently)
        if self.on_run:
            try:
                self.on_run(health)
            except Exception:
                logger.exception("Scheduler callback error")
        return health

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Scheduled health check failed")
            try:
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                break


def should_schedule(settings: Any) -> bool:
    """Background runs only make sense when they can notify someone."""
    return bool(
        settings.scheduler_enabled
        and settings.scheduler_interval_seconds > 0
        and settings.notifications_enabled
    )
