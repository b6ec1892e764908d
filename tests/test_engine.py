"""Tests for the engine's status channel and background workers."""

from __future__ import annotations

import asyncio
import json

import pytest

from contextmem.config import ContextConfig
from contextmem.engine import ContextEngine
from contextmem.events import EventBus, EventKind
from contextmem.scheduler.jobs import MaintenanceScheduler


class TestEvents:
    def test_entry_added(self, engine: ContextEngine):
        events = []
        engine.subscribe(events.append)
        entry = engine.add_entry("algo", "OCR")
        kinds = [e.kind for e in events]
        assert kinds == [EventKind.ENTRY_ADDED, EventKind.SAVED]
        assert events[0].detail == {"id": entry.id, "source": "OCR"}

    def test_skipped_entry_publishes_nothing(self, engine: ContextEngine):
        events = []
        engine.subscribe(events.append)
        engine.add_entry("  ", "OCR")
        assert events == []

    def test_eviction_event(self, config: ContextConfig, clock):
        config.store.max_entries = 1
        engine = ContextEngine(config, clock=clock)
        engine.add_entry("a", "OCR")
        events = []
        engine.subscribe(events.append)
        engine.add_entry("b", "OCR")
        evicted = [e for e in events if e.kind is EventKind.EVICTED]
        assert evicted[0].detail == {"evicted": 1, "expired": 0}

    def test_unsubscribe(self, engine: ContextEngine):
        events = []
        unsubscribe = engine.subscribe(events.append)
        unsubscribe()
        unsubscribe()
        engine.add_entry("algo", "OCR")
        assert events == []

    def test_listener_failure_contained(self, engine: ContextEngine):
        def boom(event):
            raise RuntimeError("listener broke")

        seen = []
        engine.subscribe(boom)
        engine.subscribe(seen.append)
        assert engine.add_entry("algo", "OCR") is not None
        assert seen

    def test_summary_event(self, engine: ContextEngine):
        events = []
        engine.subscribe(events.append)
        engine.record_summary("   ")
        engine.record_summary("resumo")
        assert [e.kind for e in events] == [EventKind.SUMMARY_RECORDED]

    def test_bus_publish_detail(self):
        bus = EventBus()
        got = []
        bus.subscribe(got.append)
        bus.publish(EventKind.CLEARED, removed=3)
        assert got[0].kind is EventKind.CLEARED
        assert got[0].detail == {"removed": 3}


class TestStatus:
    def test_snapshot(self, engine: ContextEngine, clock):
        engine.add_entry("a", "OCR")
        status = engine.status()
        assert status.total_entries == 1
        assert status.last_updated == clock.now
        assert status.last_error is None
        assert status.is_loading is False

    def test_context_stats(self, engine: ContextEngine, clock):
        assert engine.context_stats().oldest is None
        first = clock.now
        engine.add_entry("a", "OCR")
        clock.advance(minutes=3)
        engine.add_entry("b", "manual")
        stats = engine.context_stats()
        assert stats.total_entries == 2
        assert stats.oldest == first
        assert stats.newest == clock.now

    def test_entries_by_source(self, engine: ContextEngine):
        engine.add_entry("a", "OCR")
        engine.add_entry("b", "OCR")
        engine.add_entry("c", "LLM Response")
        assert engine.entries_by_source() == {"OCR": 2, "LLM Response": 1}


class TestBackgroundPersistence:
    @pytest.fixture
    def fast_config(self, config: ContextConfig) -> ContextConfig:
        config.scheduler.save_poll_interval = 0.01
        return config

    @pytest.mark.asyncio
    async def test_saves_coalesce_and_flush_on_close(self, fast_config, clock):
        engine = ContextEngine(fast_config, clock=clock)
        saved = []
        engine.subscribe(lambda e: saved.append(e) if e.kind is EventKind.SAVED else None)

        await engine.start()
        for i in range(3):
            engine.add_entry(f"entry {i}", "OCR")
        assert engine._daemon.pending is True
        assert not engine.store_file.path.exists()

        await engine.close()

        data = json.loads(engine.store_file.path.read_text(encoding="utf-8"))
        assert [e["content"] for e in data["entries"]] == ["entry 0", "entry 1", "entry 2"]
        assert len(saved) == 1
        assert saved[0].detail["entries"] == 3

    @pytest.mark.asyncio
    async def test_worker_drains_while_running(self, fast_config, clock):
        async with ContextEngine(fast_config, clock=clock) as engine:
            engine.add_entry("algo", "OCR")
            for _ in range(100):
                await asyncio.sleep(0.01)
                if engine.store_file.path.exists():
                    break
            assert engine.store_file.path.exists()
            assert engine._daemon.pending is False

    @pytest.mark.asyncio
    async def test_background_write_failure_reported(self, tmp_path, clock):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        config = ContextConfig()
        config.store.store_path = blocker / "store.json"
        config.scheduler.save_poll_interval = 0.01

        engine = ContextEngine(config, clock=clock)
        await engine.start()
        entry = engine.add_entry("algo", "OCR")
        await engine.close()

        assert engine.entries == (entry,)
        assert engine.last_error is not None

    @pytest.mark.asyncio
    async def test_close_without_start(self, engine: ContextEngine):
        await engine.close()

    @pytest.mark.asyncio
    async def test_inline_save_after_close(self, fast_config, clock):
        engine = ContextEngine(fast_config, clock=clock)
        await engine.start()
        await engine.close()
        engine.add_entry("depois", "OCR")
        assert engine.store_file.path.exists()


class TestMaintenanceScheduler:
    @pytest.mark.asyncio
    async def test_periodic_cleanup(self, engine: ContextEngine, clock):
        engine.add_entry("antiga", "OCR")
        clock.advance(days=31)
        scheduler = MaintenanceScheduler(engine, interval=0.01)
        shutdown = asyncio.Event()
        task = asyncio.create_task(scheduler.start(shutdown))
        for _ in range(100):
            await asyncio.sleep(0.01)
            if scheduler.runs:
                break
        shutdown.set()
        await task
        assert scheduler.runs >= 1
        assert engine.entries == ()

    @pytest.mark.asyncio
    async def test_disabled(self, engine: ContextEngine):
        scheduler = MaintenanceScheduler(engine, interval=0)
        await asyncio.wait_for(scheduler.start(asyncio.Event()), timeout=1)
        assert scheduler.runs == 0
