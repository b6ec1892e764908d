"""Retrieval scoring: similarity ranking, weighted ranking and pure recency.

Similarity ranking
    cosine(query, entry) plus a flat bonus for entries younger than the bonus
    window, capped at `score_cap`. Scores at or below `similarity_threshold`
    are dropped. Scores within `tie_window` of each other order newer first.

Weighted ranking
    similarity * 0.6 + recency * 0.25 + frequency * 0.15, where
    recency = 0.5 ** (age / half_life) and frequency is the entry tag's share
    of the recency window. Scores at or below `weighted_threshold` are dropped.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from contextmem.config import RecencyConfig, ScoringConfig
from contextmem.memory.models import Entry, ScoredEntry
from contextmem.memory.recency import RecencyWindow
from contextmem.memory.vectorizer import cosine_similarity, vectorize

logger = logging.getLogger(__name__)


class RetrievalScorer:
    """Ranks stored entries against a query."""

    def __init__(
        self,
        recency_window: RecencyWindow,
        scoring: ScoringConfig | None = None,
        recency: RecencyConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.window = recency_window
        self.scoring = scoring or ScoringConfig()
        self.recency = recency or RecencyConfig()
        self._clock = clock

    # ── Similarity ranking ───────────────────────────────────

    def score_similar(self, query: str, entries: Iterable[Entry], limit: int) -> list[ScoredEntry]:
        cfg = self.scoring
        query_vector = vectorize(query)
        now = self._clock()

        scored = []
        for entry in entries:
            base = cosine_similarity(query_vector, entry.vector)
            hours_old = (now - entry.timestamp).total_seconds() / 3600
            bonus = cfg.recency_bonus if hours_old < cfg.recency_bonus_window_hours else 0.0
            final = min(cfg.score_cap, base + bonus)
            if final > cfg.similarity_threshold:
                scored.append(ScoredEntry(entry=entry, score=final, similarity=base))

        def compare(first: ScoredEntry, second: ScoredEntry) -> int:
            if abs(first.score - second.score) < cfg.tie_window:
                if first.entry.timestamp == second.entry.timestamp:
                    return 0
                return -1 if first.entry.timestamp > second.entry.timestamp else 1
            return -1 if first.score > second.score else 1

        scored.sort(key=functools.cmp_to_key(compare))
        results = scored[: max(limit, 0)]

        for i, item in enumerate(results, 1):
            logger.debug(
                "[%d] %s - sim %.2f (base %.2f) - %.1fh ago",
                i,
                item.entry.source,
                item.score,
                item.similarity,
                (now - item.entry.timestamp).total_seconds() / 3600,
            )
        return results

    def find_similar(self, query: str, entries: Iterable[Entry], limit: int = 5) -> list[Entry]:
        return [s.entry for s in self.score_similar(query, entries, limit)]

    # ── Weighted ranking ─────────────────────────────────────

    def recency_weight(self, entry: Entry, now: datetime) -> float:
        """Exponential decay: 1.0 at age zero, halving every half-life."""
        age = max((now - entry.timestamp).total_seconds(), 0.0)
        if self.recency.half_life_seconds <= 0:
            return 0.0
        return 0.5 ** (age / self.recency.half_life_seconds)

    def find_weighted(self, query: str, entries: Iterable[Entry], limit: int = 12) -> list[ScoredEntry]:
        cfg = self.scoring
        self.window.prune()
        query_vector = vectorize(query)
        now = self._clock()
        frequencies = self.window.frequencies()

        scored = []
        for entry in entries:
            similarity = cosine_similarity(query_vector, entry.vector)
            recency = self.recency_weight(entry, now)
            frequency = frequencies.get(entry.tag, 0.0)
            score = (
                similarity * cfg.similarity_weight
                + recency * cfg.recency_weight
                + frequency * cfg.frequency_weight
            )
            if score > cfg.weighted_threshold:
                scored.append(
                    ScoredEntry(
                        entry=entry,
                        score=score,
                        similarity=similarity,
                        recency=recency,
                        frequency=frequency,
                    )
                )

        scored.sort(key=lambda s: s.score, reverse=True)
        results = scored[: max(limit, 0)]
        for i, item in enumerate(results, 1):
            logger.debug(
                "[%d] %s - score %.2f (sim %.2f, rec %.2f, freq %.2f)",
                i,
                item.entry.source,
                item.score,
                item.similarity,
                item.recency,
                item.frequency,
            )
        return results

    # ── Pure recency ─────────────────────────────────────────

    @staticmethod
    def find_most_recent(entries: Iterable[Entry], limit: int = 3) -> list[Entry]:
        # equal timestamps fall back to insertion order, later first
        ordered = sorted(enumerate(entries), key=lambda p: (p[1].timestamp, p[0]), reverse=True)
        return [entry for _, entry in ordered[: max(limit, 0)]]
