"""Context assembly — turns ranked entries into a size-bounded text block."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from contextmem.config import AssemblyConfig
from contextmem.memory.models import Entry, Summary
from contextmem.memory.scorer import RetrievalScorer
from contextmem.memory.vectorizer import vectorize

logger = logging.getLogger(__name__)

NO_CONTEXT = "No relevant context found."

WEIGHTED_HEADER = "=== WEIGHTED USER CONTEXT ==="
WEIGHTED_FOOTER = "=== END OF WEIGHTED CONTEXT ==="
HISTORY_HEADER = "=== USER CONTEXT HISTORY ==="
HISTORY_FOOTER = "=== END OF CONTEXT HISTORY ==="
SUMMARIZED_HEADER = "=== SUMMARIZED CONTEXT ==="
SUMMARIZED_FOOTER = "=== END OF SUMMARIZED CONTEXT ==="
CURRENT_HEADER = "=== CURRENT CONTEXT ==="
CURRENT_FOOTER = "=== END OF CURRENT CONTEXT ==="


def format_timestamp(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M")


class ContextAssembler:
    """Renders ranked entries and owns the running summary slot."""

    def __init__(
        self,
        scorer: RetrievalScorer,
        entries: Callable[[], tuple[Entry, ...]],
        config: AssemblyConfig | None = None,
    ) -> None:
        self.scorer = scorer
        self._entries = entries
        self.config = config or AssemblyConfig()
        self.summary = Summary()

    # ── Summary slot ─────────────────────────────────────────

    def record_summary(self, text: str) -> bool:
        """Overwrite the summary. Whitespace-only text is ignored."""
        trimmed = text.strip()
        if not trimmed:
            return False
        self.summary = Summary(text=trimmed, vector=vectorize(trimmed))
        return True

    def _summary_fallback(self) -> str:
        if self.summary:
            return f"Current user summary:\n{self.summary.text}\n"
        return NO_CONTEXT

    # ── Weighted context ─────────────────────────────────────

    def assemble_context(self, query: str, max_items: int | None = None) -> str:
        """Weighted-ranked context block, never empty."""
        limit = self.config.max_items if max_items is None else max_items
        scored = self.scorer.find_weighted(query, self._entries(), limit)
        if not scored:
            logger.info("No relevant context for query: %s", query[:50])
            return self._summary_fallback()

        parts = [f"{WEIGHTED_HEADER}\n\n"]
        for i, item in enumerate(scored, 1):
            parts.append(
                f"[{i}] {item.entry.source} - {format_timestamp(item.entry.timestamp)}\n"
                f"(score: {item.score:.2f})\n"
                f"{item.entry.content}\n\n"
            )
        if self.summary:
            parts.append(f"Current running summary:\n{self.summary.text}\n\n")
        parts.append(f"{WEIGHTED_FOOTER}\n\n")
        context = "".join(parts)
        logger.info("Weighted context assembled: %d items, %d chars", len(scored), len(context))
        return context

    def assemble_summarized_context(self, query: str, max_chars: int | None = None) -> str:
        """Weighted context if it fits `max_chars`, else summary plus latest activity."""
        budget = self.config.summarized_max_chars if max_chars is None else max_chars
        full = self.assemble_context(query, self.config.summarized_max_items)
        if len(full) <= budget:
            return full

        if not self.summary:
            return NO_CONTEXT

        logger.info("Context of %d chars exceeds %d, using summary", len(full), budget)
        recent = self.scorer.find_most_recent(self._entries(), self.config.summary_recent_count)
        limit = self.config.summary_truncate_chars
        parts = [f"{SUMMARIZED_HEADER}\n\n", f"User state summary:\n{self.summary.text}\n\n"]
        if recent:
            parts.append("Most recent activity:\n")
            for entry in recent:
                content = entry.content[:limit]
                ellipsis = "..." if len(entry.content) > limit else ""
                parts.append(
                    f"• {entry.source} ({format_timestamp(entry.timestamp)}): "
                    f"{content}{ellipsis}\n"
                )
        parts.append(f"\n{SUMMARIZED_FOOTER}\n\n")
        return "".join(parts)

    # ── Similarity and recent-only context ───────────────────

    def assemble_similarity_context(self, query: str, max_entries: int | None = None) -> str:
        """Similarity-ranked history block with metadata lines."""
        limit = self.config.similar_max_entries if max_entries is None else max_entries
        similar = self.scorer.find_similar(query, self._entries(), limit)
        if not similar:
            return NO_CONTEXT

        parts = [f"{HISTORY_HEADER}\n\n"]
        for i, entry in enumerate(similar, 1):
            parts.append(
                f"[{i}] {entry.source} - {format_timestamp(entry.timestamp)}\n{entry.content}\n\n"
            )
            if entry.metadata:
                meta = ", ".join(f"{k}: {v}" for k, v in entry.metadata.items())
                parts.append(f"Metadata: {meta}\n\n")
        parts.append(f"{HISTORY_FOOTER}\n\n")
        return "".join(parts)

    def assemble_recent_context(self, limit: int = 2) -> str:
        """Block of the latest entries only; empty string when the store is empty."""
        recent = self.scorer.find_most_recent(self._entries(), limit)
        if not recent:
            return ""
        parts = [f"{CURRENT_HEADER}\n\n"]
        for i, entry in enumerate(recent, 1):
            parts.append(
                f"[{i}] {entry.source} - {format_timestamp(entry.timestamp)}\n{entry.content}\n\n"
            )
        parts.append(f"{CURRENT_FOOTER}\n\n")
        return "".join(parts)
