"""ContextEngine — the single owner of the entry store and its collaborators.

Responsibilities:
1. Accept observations from producers (add_entry) and keep the store bounded
2. Feed the recency window used for frequency scoring
3. Rank entries and assemble context blocks for consumers
4. Persist the store: inline when used synchronously, or through the
   background PersistenceDaemon once start() has been awaited
5. Publish status changes on an event channel

All mutating calls are expected to come from one owner (one task or thread).
Readers work on tuple snapshots of the store and never see a partial update.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from contextmem.config import ContextConfig
from contextmem.events import EngineStatus, EventBus, EventKind, Listener
from contextmem.memory.assembler import ContextAssembler
from contextmem.memory.daemon import PersistenceDaemon
from contextmem.memory.models import ContextStats, Entry, ScoredEntry, StoreSnapshot
from contextmem.memory.persistence import (
    PersistenceReadError,
    PersistenceWriteError,
    StoreFile,
)
from contextmem.memory.recency import RecencyWindow
from contextmem.memory.scorer import RetrievalScorer
from contextmem.memory.store import EntryStore
from contextmem.scheduler.jobs import MaintenanceScheduler

logger = logging.getLogger(__name__)


class ContextEngine:
    """Contextual memory: bounded storage, weighted retrieval, context assembly."""

    def __init__(
        self,
        config: ContextConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or ContextConfig()
        self._clock = clock
        self.store = EntryStore(self.config.store, clock=clock)
        self.store_file = StoreFile(self.config.store.store_path)
        self.recency = RecencyWindow(self.config.recency, clock=clock)
        self.scorer = RetrievalScorer(
            self.recency, self.config.scoring, self.config.recency, clock=clock
        )
        self.assembler = ContextAssembler(
            self.scorer, lambda: self.store.entries, self.config.assembly
        )
        self.events = EventBus()
        self.last_error: str | None = None
        self.is_loading = False
        self._daemon: PersistenceDaemon | None = None
        self._shutdown_event: asyncio.Event | None = None
        self._tasks: list[asyncio.Task] = []

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Start the background writer and the maintenance scheduler."""
        if self._daemon is not None:
            return
        self._shutdown_event = asyncio.Event()
        self._daemon = PersistenceDaemon(
            self.store_file,
            self.store.snapshot,
            on_saved=self._on_saved,
            on_error=self._on_save_error,
            poll_interval=self.config.scheduler.save_poll_interval,
        )
        scheduler = MaintenanceScheduler(self, self.config.scheduler.cleanup_interval)
        self._tasks = [
            asyncio.create_task(self._daemon.run(self._shutdown_event)),
            asyncio.create_task(scheduler.start(self._shutdown_event)),
        ]

    async def close(self) -> None:
        """Stop background tasks; pending saves are flushed first."""
        if self._shutdown_event is None:
            return
        self._shutdown_event.set()
        await asyncio.gather(*self._tasks)
        self._tasks = []
        self._daemon = None
        self._shutdown_event = None

    async def __aenter__(self) -> ContextEngine:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Store mutations ──────────────────────────────────────

    def add_entry(
        self,
        content: str,
        source: str,
        metadata: dict[str, str] | None = None,
    ) -> Entry | None:
        """Record an observation. Returns None for whitespace-only content."""
        entry = self.store.add_entry(content, source, metadata)
        if entry is None:
            return None
        self.recency.index(entry)
        evicted, expired = self.store.enforce_bounds()
        self.events.publish(EventKind.ENTRY_ADDED, id=entry.id, source=entry.source)
        if evicted or expired:
            self.events.publish(EventKind.EVICTED, evicted=evicted, expired=expired)
        self._request_save()
        return entry

    def remove_entry(self, entry_id: str) -> None:
        if self.store.remove_entry(entry_id):
            self.events.publish(EventKind.ENTRY_REMOVED, id=entry_id)
            self._request_save()

    def clear(self) -> None:
        removed = self.store.clear()
        self.events.publish(EventKind.CLEARED, removed=removed)
        self._request_save()

    def cleanup_old_entries(self) -> int:
        """Drop entries past max_entry_age_days. Returns the number removed."""
        removed = self.store.remove_older_than(self.config.store.max_entry_age_days)
        if not removed:
            logger.info("Age cleanup: nothing to remove")
        self.events.publish(EventKind.CLEANED, removed=removed)
        self._request_save()
        return removed

    def record_summary(self, text: str) -> None:
        if self.assembler.record_summary(text):
            self.events.publish(EventKind.SUMMARY_RECORDED, length=len(self.summary_text))

    @property
    def summary_text(self) -> str:
        return self.assembler.summary.text

    # ── Retrieval ────────────────────────────────────────────

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self.store.entries

    def find_similar(self, query: str, limit: int = 5) -> list[Entry]:
        return self.scorer.find_similar(query, self.store.entries, limit)

    def score_similar(self, query: str, limit: int = 5) -> list[ScoredEntry]:
        return self.scorer.score_similar(query, self.store.entries, limit)

    def find_weighted(self, query: str, limit: int = 12) -> list[ScoredEntry]:
        return self.scorer.find_weighted(query, self.store.entries, limit)

    def find_most_recent(self, limit: int = 3) -> list[Entry]:
        return self.scorer.find_most_recent(self.store.entries, limit)

    # ── Context assembly ─────────────────────────────────────

    def assemble_context(self, query: str, max_items: int | None = None) -> str:
        return self.assembler.assemble_context(query, max_items)

    def assemble_summarized_context(self, query: str, max_chars: int | None = None) -> str:
        return self.assembler.assemble_summarized_context(query, max_chars)

    def assemble_similarity_context(self, query: str, max_entries: int | None = None) -> str:
        return self.assembler.assemble_similarity_context(query, max_entries)

    def assemble_recent_context(self, limit: int = 2) -> str:
        return self.assembler.assemble_recent_context(limit)

    # ── Persistence ──────────────────────────────────────────

    def load(self) -> None:
        """Replace the store with the file's contents; missing or corrupt → empty."""
        self.is_loading = True
        self.last_error = None
        try:
            snapshot = self.store_file.read()
            if snapshot is None:
                logger.info("No store file at %s, starting empty", self.store_file.path)
            self.store.restore(snapshot)
            loaded_at = self.store.last_updated
            evicted, expired = self.store.enforce_bounds()
            if evicted or expired:
                logger.info(
                    "Loaded store was out of bounds: %d evicted, %d expired", evicted, expired
                )
                self.events.publish(EventKind.EVICTED, evicted=evicted, expired=expired)
            else:
                self.store.last_updated = loaded_at
            self.events.publish(EventKind.LOADED, entries=len(self.store))
            if snapshot is not None and snapshot.entries:
                stats = self.context_stats()
                logger.info(
                    "Entries span %s to %s, by source: %s",
                    stats.oldest,
                    stats.newest,
                    self.store.entries_by_source(),
                )
        except PersistenceReadError as e:
            logger.error("Failed to load context store: %s", e)
            self.last_error = f"Failed to load context store: {e}"
            self.store.restore(None)
            self.events.publish(EventKind.LOAD_FAILED, error=str(e))
        finally:
            self.is_loading = False

    def save(self) -> bool:
        """Write the store now. Returns False (and records the error) on failure."""
        try:
            size = self.store_file.write(self.store.snapshot())
        except PersistenceWriteError as e:
            self._on_save_error(e)
            return False
        self._on_saved(len(self.store), size)
        return True

    def snapshot(self) -> StoreSnapshot:
        return self.store.snapshot()

    def _request_save(self) -> None:
        if self._daemon is not None:
            self._daemon.request()
        else:
            self.save()

    def _on_saved(self, entries: int, size: int) -> None:
        self.events.publish(EventKind.SAVED, entries=entries, bytes=size)

    def _on_save_error(self, error: PersistenceWriteError) -> None:
        logger.error("Failed to save context store: %s", error)
        self.last_error = f"Failed to save context store: {error}"
        self.events.publish(EventKind.SAVE_FAILED, error=str(error))

    # ── Status ────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    def status(self) -> EngineStatus:
        return EngineStatus(
            total_entries=len(self.store),
            last_updated=self.store.last_updated,
            last_error=self.last_error,
            is_loading=self.is_loading,
        )

    def context_stats(self) -> ContextStats:
        timestamps = [e.timestamp for e in self.store.entries]
        return ContextStats(
            total_entries=len(timestamps),
            oldest=min(timestamps, default=None),
            newest=max(timestamps, default=None),
        )

    def entries_by_source(self) -> dict[str, int]:
        return self.store.entries_by_source()
