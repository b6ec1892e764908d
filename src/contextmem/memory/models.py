"""Records shared by the store, scorer and assembler."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp as naive local time; aware values are converted."""
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is not None:
        ts = ts.astimezone().replace(tzinfo=None)
    return ts


def _parse_metadata(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"metadata must be an object, got {type(value).__name__}")
    return {str(k): str(v) for k, v in value.items()}


@dataclass(frozen=True)
class Entry:
    """One stored observation and its feature vector. Immutable once created."""

    id: str
    content: str
    vector: tuple[float, ...]
    timestamp: datetime
    source: str
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        content: str,
        source: str,
        vector: tuple[float, ...],
        timestamp: datetime,
        metadata: dict[str, str] | None = None,
    ) -> Entry:
        return cls(
            id=str(uuid.uuid4()),
            content=content,
            vector=tuple(vector),
            timestamp=timestamp,
            source=source,
            metadata=dict(metadata or {}),
        )

    @property
    def tag(self) -> str:
        """Application tag used for frequency scoring: app > bundle > source."""
        return self.metadata.get("app") or self.metadata.get("bundle") or self.source

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "vector": list(self.vector),
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entry:
        return cls(
            id=str(data["id"]),
            content=str(data["content"]),
            vector=tuple(float(v) for v in data["vector"]),
            timestamp=_parse_timestamp(data["timestamp"]),
            source=str(data["source"]),
            metadata=_parse_metadata(data.get("metadata")),
        )


@dataclass(frozen=True)
class StoreSnapshot:
    """Point-in-time copy of the store: what gets persisted and what readers see."""

    entries: tuple[Entry, ...]
    last_updated: datetime
    version: str = "1.0"

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "lastUpdated": self.last_updated.isoformat(),
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoreSnapshot:
        return cls(
            entries=tuple(Entry.from_dict(e) for e in data["entries"]),
            last_updated=_parse_timestamp(data["lastUpdated"]),
            version=str(data.get("version", "1.0")),
        )


@dataclass(frozen=True)
class RecentVector:
    """Ephemeral record in the recency window. Never persisted."""

    vector: tuple[float, ...]
    timestamp: datetime
    tag: str
    key: str


@dataclass
class Summary:
    """Single running digest of user state, overwritten wholesale."""

    text: str = ""
    vector: tuple[float, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True)
class ScoredEntry:
    """An entry with the score it was ranked by and the signals behind it."""

    entry: Entry
    score: float
    similarity: float
    recency: float = 0.0
    frequency: float = 0.0


@dataclass(frozen=True)
class ContextStats:
    total_entries: int
    oldest: datetime | None
    newest: datetime | None
