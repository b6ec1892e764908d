"""Entry store — the bounded, insertion-ordered collection of observations.

Entries are append-only. They leave the store only through bulk removal:
count eviction, age cleanup, explicit removal by id, or clear().
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from contextmem.config import StoreConfig
from contextmem.memory.models import Entry, StoreSnapshot
from contextmem.memory.vectorizer import vectorize

logger = logging.getLogger(__name__)


class EntryStore:
    """Owns the durable entry collection and enforces its bounds."""

    def __init__(
        self,
        config: StoreConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or StoreConfig()
        self._clock = clock
        self._entries: list[Entry] = []
        self.last_updated: datetime = clock()
        self.version = self.config.format_version

    # ── Read access ──────────────────────────────────────────

    @property
    def entries(self) -> tuple[Entry, ...]:
        """Snapshot of the entries in insertion order."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Entry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            entries=tuple(self._entries),
            last_updated=self.last_updated,
            version=self.version,
        )

    # ── Mutation ─────────────────────────────────────────────

    def add_entry(
        self,
        content: str,
        source: str,
        metadata: dict[str, str] | None = None,
    ) -> Entry | None:
        """Trim, vectorize and append. Whitespace-only content is a no-op."""
        trimmed = content.strip()
        if not trimmed:
            return None
        entry = Entry.create(
            content=trimmed,
            source=source,
            vector=vectorize(trimmed),
            timestamp=self._clock(),
            metadata=metadata,
        )
        self._entries.append(entry)
        self.last_updated = self._clock()
        logger.info("New entry from %s: %s", source, trimmed[:100])
        return entry

    def enforce_bounds(self) -> tuple[int, int]:
        """Evict past max_entries (oldest inserted first), then drop aged entries.

        Returns (evicted, expired).
        """
        evicted = 0
        if len(self._entries) > self.config.max_entries:
            evicted = len(self._entries) - self.config.max_entries
            self._entries = self._entries[evicted:]
            logger.info(
                "Evicted %d old entries (limit: %d)", evicted, self.config.max_entries
            )
        expired = self.remove_older_than(self.config.max_entry_age_days)
        return evicted, expired

    def remove_older_than(self, days: int) -> int:
        """Remove entries older than `days`. Returns the number removed."""
        cutoff = self._clock() - timedelta(days=days)
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.timestamp >= cutoff]
        removed = before - len(self._entries)
        self.last_updated = self._clock()
        if removed:
            logger.info("Removed %d entries older than %d days", removed, days)
        return removed

    def remove_entry(self, entry_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        if len(self._entries) == before:
            return False
        self.last_updated = self._clock()
        return True

    def clear(self) -> int:
        removed = len(self._entries)
        self._entries = []
        self.last_updated = self._clock()
        logger.info("Cleared store: %d entries removed", removed)
        return removed

    def restore(self, snapshot: StoreSnapshot | None) -> None:
        """Replace contents with a loaded snapshot, or reset when None."""
        if snapshot is None:
            self._entries = []
            self.last_updated = self._clock()
            self.version = self.config.format_version
            return
        self._entries = list(snapshot.entries)
        self.last_updated = snapshot.last_updated
        self.version = snapshot.version

    # ── Statistics ───────────────────────────────────────────

    def entries_by_source(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for entry in self._entries:
            counts[entry.source] = counts.get(entry.source, 0) + 1
        return counts
