"""Persistence daemon — serialize background saves of the entry store.

Mutations call request(); a single worker drains the queue and writes the
latest snapshot. Requests made while a save is already pending coalesce into
that save, since every write carries the whole store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from contextmem.memory.models import StoreSnapshot
from contextmem.memory.persistence import PersistenceWriteError, StoreFile

logger = logging.getLogger(__name__)


class PersistenceDaemon:
    """Single background writer for the store file."""

    def __init__(
        self,
        store_file: StoreFile,
        snapshot: Callable[[], StoreSnapshot],
        on_saved: Callable[[int, int], None] | None = None,
        on_error: Callable[[PersistenceWriteError], None] | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        self.store_file = store_file
        self._snapshot = snapshot
        self._on_saved = on_saved
        self._on_error = on_error
        self.poll_interval = poll_interval
        self._queue: asyncio.Queue[None] = asyncio.Queue()
        self._pending = False
        self.running = False

    @property
    def pending(self) -> bool:
        return self._pending

    def request(self) -> None:
        """Enqueue a save unless one is already waiting."""
        if self._pending:
            return
        self._pending = True
        self._queue.put_nowait(None)

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Main loop: drain save requests until shutdown, then flush."""
        logger.info("PersistenceDaemon started, writing %s", self.store_file.path)
        self.running = True
        try:
            while not shutdown_event.is_set():
                try:
                    await asyncio.wait_for(self._queue.get(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
                if self._pending:
                    await self._save()
        finally:
            self.running = False
            if self._pending:
                await self._save()
        logger.info("PersistenceDaemon stopped.")

    async def _save(self) -> None:
        self._pending = False
        snapshot = self._snapshot()
        try:
            size = await asyncio.to_thread(self.store_file.write, snapshot)
        except PersistenceWriteError as e:
            logger.error("Background save failed: %s", e)
            if self._on_error:
                self._on_error(e)
            return
        if self._on_saved:
            self._on_saved(len(snapshot.entries), size)
