"""Recency window: a short, bounded buffer of recent vectors for frequency scoring."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from contextmem.config import RecencyConfig
from contextmem.memory.models import Entry, RecentVector
from contextmem.memory.vectorizer import content_hash


class RecencyWindow:
    """Holds vectors inserted in the last `recent_max_age_seconds`, capped by count."""

    def __init__(
        self,
        config: RecencyConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or RecencyConfig()
        self._clock = clock
        self._recent: list[RecentVector] = []

    def __len__(self) -> int:
        return len(self._recent)

    @property
    def items(self) -> tuple[RecentVector, ...]:
        return tuple(self._recent)

    def index(self, entry: Entry) -> None:
        self._recent.append(
            RecentVector(
                vector=entry.vector,
                timestamp=entry.timestamp,
                tag=entry.tag,
                key=f"{content_hash(entry.content):016x}",
            )
        )
        self.prune()

    def prune(self) -> None:
        """Drop vectors past the age limit, then trim oldest-first to the count cap."""
        cutoff = self._clock() - timedelta(seconds=self.config.recent_max_age_seconds)
        self._recent = [r for r in self._recent if r.timestamp >= cutoff]
        if len(self._recent) > self.config.recent_max_count:
            self._recent = self._recent[-self.config.recent_max_count :]

    def frequencies(self) -> dict[str, float]:
        """Per-tag counts normalized by the most frequent tag, in [0, 1]."""
        counts: dict[str, int] = {}
        for r in self._recent:
            counts[r.tag] = counts.get(r.tag, 0) + 1
        top = max(max(counts.values(), default=0), 1)
        return {tag: count / top for tag, count in counts.items()}

    def frequency(self, tag: str) -> float:
        return self.frequencies().get(tag, 0.0)

    def clear(self) -> None:
        self._recent = []
