"""Scheduler for periodic maintenance using pure asyncio.

Jobs:
- Cleanup: drop entries older than the configured age limit
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextmem.engine import ContextEngine

logger = logging.getLogger(__name__)


class MaintenanceScheduler:
    """Runs cleanup_old_entries() on a fixed interval."""

    def __init__(self, engine: ContextEngine, interval: float) -> None:
        self._engine = engine
        self._interval = interval
        self.runs = 0

    async def start(self, shutdown_event: asyncio.Event) -> None:
        """Run scheduled jobs until shutdown_event is set."""
        if self._interval <= 0:
            logger.info("Maintenance scheduler disabled")
            return
        logger.info("Maintenance scheduler started (cleanup every %ss)", self._interval)

        while not shutdown_event.is_set():
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self._interval)
                break  # shutdown requested
            except asyncio.TimeoutError:
                pass  # interval elapsed

            await self._cleanup()

        logger.info("Maintenance scheduler stopped.")

    async def _cleanup(self) -> None:
        try:
            removed = self._engine.cleanup_old_entries()
            self.runs += 1
            logger.debug("Scheduled cleanup removed %d entries", removed)
        except Exception as e:
            logger.error("Scheduled cleanup error: %s", e)
