"""Export stored entries as daily Markdown activity logs with YAML frontmatter."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import frontmatter

from contextmem.memory.models import Entry

logger = logging.getLogger(__name__)


def _render_day(day: str, entries: list[Entry]) -> str:
    sources = sorted({e.source for e in entries})
    lines = [f"# {day}", ""]
    for entry in entries:
        text = " ".join(entry.content.split())
        lines.append(f"- [{entry.timestamp.strftime('%H:%M')}] ({entry.source}) {text}")
    post = frontmatter.Post("\n".join(lines) + "\n", date=day, entries=len(entries), sources=sources)
    return frontmatter.dumps(post) + "\n"


def export_markdown(entries: Iterable[Entry], out_dir: Path) -> list[Path]:
    """Write one YYYY-MM-DD.md per day that has entries. Returns the files written."""
    by_day: dict[str, list[Entry]] = {}
    for entry in sorted(entries, key=lambda e: e.timestamp):
        by_day.setdefault(entry.timestamp.strftime("%Y-%m-%d"), []).append(entry)

    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for day, day_entries in by_day.items():
        path = out_dir / f"{day}.md"
        path.write_text(_render_day(day, day_entries), encoding="utf-8")
        written.append(path)
    logger.info("Exported %d days of activity to %s", len(written), out_dir)
    return written
