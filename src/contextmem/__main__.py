"""Entry point: python -m contextmem <command>

- add:        Record an observation
- similar:    Similarity-ranked entries for a query
- weighted:   Weighted-ranked entries with their scores
- recent:     Most recently recorded entries
- context:    Weighted context block for a query
- summarized: Size-bounded context block for a query
- stats:      Store statistics
- cleanup:    Drop entries past the age limit
- clear:      Remove every entry
- export:     Write daily Markdown activity logs
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from contextmem.config import load_config
from contextmem.engine import ContextEngine


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_meta(pairs: list[str]) -> dict[str, str]:
    meta = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"metadata must be key=value, got {pair!r}")
        meta[key.strip()] = value.strip()
    return meta


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="contextmem", description="Contextual memory engine")
    parser.add_argument("--config", type=Path, default=None, help="Path to contextmem.toml")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_add = sub.add_parser("add", help="Record an observation")
    p_add.add_argument("text")
    p_add.add_argument("--source", default="manual")
    p_add.add_argument("--meta", nargs="*", default=[], help="key=value pairs")

    for name, help_text in [
        ("similar", "Similarity-ranked entries"),
        ("weighted", "Weighted-ranked entries"),
    ]:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("query")
        p.add_argument("--limit", type=int, default=5)

    p_recent = sub.add_parser("recent", help="Most recent entries")
    p_recent.add_argument("--limit", type=int, default=3)

    p_context = sub.add_parser("context", help="Weighted context block")
    p_context.add_argument("query")
    p_context.add_argument("--max-items", dest="max_items", type=int, default=None)

    p_sum = sub.add_parser("summarized", help="Size-bounded context block")
    p_sum.add_argument("query")
    p_sum.add_argument("--max-chars", dest="max_chars", type=int, default=None)
    p_sum.add_argument("--summary", default=None, help="Record this summary first")

    sub.add_parser("stats", help="Store statistics")
    sub.add_parser("cleanup", help="Drop entries past the age limit")
    sub.add_parser("clear", help="Remove every entry")

    p_export = sub.add_parser("export", help="Write daily Markdown logs")
    p_export.add_argument("out_dir", type=Path)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = load_config(args.config)
    _setup_logging(config.log_level)

    engine = ContextEngine(config)
    engine.load()

    if args.cmd == "add":
        try:
            meta = _parse_meta(args.meta)
        except ValueError as e:
            parser.error(str(e))
        entry = engine.add_entry(args.text, args.source, meta)
        print(entry.id if entry else "(skipped: empty content)")
    elif args.cmd == "similar":
        for entry in engine.find_similar(args.query, args.limit):
            print(f"{entry.timestamp:%Y-%m-%d %H:%M}  {entry.source}  {entry.content[:80]}")
    elif args.cmd == "weighted":
        for item in engine.find_weighted(args.query, args.limit):
            print(f"{item.score:.2f}  {item.entry.source}  {item.entry.content[:80]}")
    elif args.cmd == "recent":
        for entry in engine.find_most_recent(args.limit):
            print(f"{entry.timestamp:%Y-%m-%d %H:%M}  {entry.source}  {entry.content[:80]}")
    elif args.cmd == "context":
        print(engine.assemble_context(args.query, args.max_items))
    elif args.cmd == "summarized":
        if args.summary:
            engine.record_summary(args.summary)
        print(engine.assemble_summarized_context(args.query, args.max_chars))
    elif args.cmd == "stats":
        stats = engine.context_stats()
        print(f"entries: {stats.total_entries}")
        print(f"oldest:  {stats.oldest or '-'}")
        print(f"newest:  {stats.newest or '-'}")
        for source, count in sorted(engine.entries_by_source().items()):
            print(f"  {source}: {count}")
    elif args.cmd == "cleanup":
        print(f"removed {engine.cleanup_old_entries()} entries")
    elif args.cmd == "clear":
        engine.clear()
        print("store cleared")
    elif args.cmd == "export":
        from contextmem.memory.export import export_markdown

        for path in export_markdown(engine.entries, args.out_dir):
            print(path)

    if engine.last_error:
        print(engine.last_error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
