"""Engine status snapshot and change notifications."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    ENTRY_ADDED = "entry_added"
    ENTRY_REMOVED = "entry_removed"
    CLEARED = "cleared"
    CLEANED = "cleaned"
    EVICTED = "evicted"
    SUMMARY_RECORDED = "summary_recorded"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


@dataclass(frozen=True)
class EngineEvent:
    kind: EventKind
    detail: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class EngineStatus:
    """What a dashboard would bind to."""

    total_entries: int
    last_updated: datetime | None
    last_error: str | None
    is_loading: bool = False


Listener = Callable[[EngineEvent], None]


class EventBus:
    """Synchronous fan-out to subscribed listeners."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, kind: EventKind, **detail: Any) -> None:
        event = EngineEvent(kind=kind, detail=detail)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener failed on %s", kind.value)
