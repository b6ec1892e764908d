"""JSON file persistence for the entry store.

The whole store is written on every save, so concurrent writers resolve to
last-write-wins. Writes go to a sibling temp file and are renamed into place.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from contextmem.memory.models import StoreSnapshot

logger = logging.getLogger(__name__)


class PersistenceReadError(Exception):
    """The store file exists but could not be read or parsed."""


class PersistenceWriteError(Exception):
    """The store file could not be written."""


class StoreFile:
    """Load/save a StoreSnapshot as a single JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> StoreSnapshot | None:
        """Return the stored snapshot, or None if no file exists yet."""
        if not self.path.exists():
            return None
        try:
            raw = self.path.read_text(encoding="utf-8")
            snapshot = StoreSnapshot.from_dict(json.loads(raw))
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadError(f"Failed to read {self.path}: {e}") from e
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceReadError(f"Malformed store file {self.path}: {e}") from e
        logger.info(
            "Loaded %d entries from %s (%d bytes)",
            len(snapshot.entries),
            self.path,
            len(raw.encode("utf-8")),
        )
        return snapshot

    def write(self, snapshot: StoreSnapshot) -> int:
        """Write the snapshot, returning the number of bytes written."""
        data = json.dumps(snapshot.to_dict(), ensure_ascii=False).encode("utf-8")
        tmp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceWriteError(f"Failed to write {self.path}: {e}") from e
        logger.info(
            "Saved %d entries to %s (%d bytes)", len(snapshot.entries), self.path, len(data)
        )
        return len(data)
