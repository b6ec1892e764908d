"""Shared fixtures: a controllable clock and an engine writing under tmp_path."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from contextmem.config import ContextConfig, StoreConfig
from contextmem.engine import ContextEngine


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 3, 2, 9, 30, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(tmp_path: Path) -> ContextConfig:
    return ContextConfig(store=StoreConfig(store_path=tmp_path / "user_context.json"))


@pytest.fixture
def engine(config: ContextConfig, clock: FakeClock) -> ContextEngine:
    return ContextEngine(config, clock=clock)
