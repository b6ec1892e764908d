"""Configuration loading from environment variables and contextmem.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_HOME = Path.home() / ".contextmem"
_DEFAULT_STORE_PATH = _DEFAULT_HOME / "user_context.json"
_CONFIG_FILENAME = "contextmem.toml"


@dataclass
class StoreConfig:
    """Entry store bounds and file location."""

    max_entries: int = 1000
    max_entry_age_days: int = 30
    store_path: Path = _DEFAULT_STORE_PATH
    format_version: str = "1.0"


@dataclass
class RecencyConfig:
    """Recency window and decay settings."""

    recent_max_count: int = 100
    recent_max_age_seconds: float = 300.0
    half_life_seconds: float = 120.0


@dataclass
class ScoringConfig:
    """Thresholds and coefficients for both ranking modes."""

    similarity_threshold: float = 0.3
    weighted_threshold: float = 0.15
    similarity_weight: float = 0.6
    recency_weight: float = 0.25
    frequency_weight: float = 0.15
    recency_bonus: float = 0.1
    recency_bonus_window_hours: float = 24.0
    score_cap: float = 1.0
    tie_window: float = 0.05


@dataclass
class AssemblyConfig:
    """Context block sizes."""

    max_items: int = 12
    similar_max_entries: int = 10
    summarized_max_items: int = 20
    summarized_max_chars: int = 2000
    summary_recent_count: int = 3
    summary_truncate_chars: int = 100


@dataclass
class SchedulerConfig:
    """Background maintenance configuration."""

    cleanup_interval: int = 3600
    save_poll_interval: float = 1.0


@dataclass
class ContextConfig:
    """Top-level contextmem configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    recency: RecencyConfig = field(default_factory=RecencyConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    assembly: AssemblyConfig = field(default_factory=AssemblyConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> ContextConfig:
    """Load configuration from environment variables and optional contextmem.toml.

    Priority: environment variables > contextmem.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_HOME / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    store_data = file_data.get("store", {})
    recency_data = file_data.get("recency", {})
    scoring_data = file_data.get("scoring", {})
    assembly_data = file_data.get("assembly", {})
    scheduler_data = file_data.get("scheduler", {})

    defaults = ScoringConfig()
    scoring = ScoringConfig(
        **{
            name: float(scoring_data.get(name, getattr(defaults, name)))
            for name in defaults.__dataclass_fields__
        }
    )

    assembly_defaults = AssemblyConfig()
    assembly = AssemblyConfig(
        **{
            name: int(assembly_data.get(name, getattr(assembly_defaults, name)))
            for name in assembly_defaults.__dataclass_fields__
        }
    )

    config = ContextConfig(
        store=StoreConfig(
            max_entries=int(
                os.getenv("CONTEXTMEM_MAX_ENTRIES", store_data.get("max_entries", 1000))
            ),
            max_entry_age_days=int(
                os.getenv(
                    "CONTEXTMEM_MAX_ENTRY_AGE_DAYS", store_data.get("max_entry_age_days", 30)
                )
            ),
            store_path=Path(
                os.getenv(
                    "CONTEXTMEM_STORE_PATH",
                    store_data.get("store_path", str(_DEFAULT_STORE_PATH)),
                )
            ).expanduser(),
            format_version=store_data.get("format_version", "1.0"),
        ),
        recency=RecencyConfig(
            recent_max_count=int(
                os.getenv(
                    "CONTEXTMEM_RECENT_MAX_COUNT", recency_data.get("recent_max_count", 100)
                )
            ),
            recent_max_age_seconds=float(
                os.getenv(
                    "CONTEXTMEM_RECENT_MAX_AGE", recency_data.get("recent_max_age_seconds", 300)
                )
            ),
            half_life_seconds=float(
                os.getenv("CONTEXTMEM_HALF_LIFE", recency_data.get("half_life_seconds", 120))
            ),
        ),
        scoring=scoring,
        assembly=assembly,
        scheduler=SchedulerConfig(
            cleanup_interval=int(
                os.getenv(
                    "CONTEXTMEM_CLEANUP_INTERVAL", scheduler_data.get("cleanup_interval", 3600)
                )
            ),
            save_poll_interval=float(scheduler_data.get("save_poll_interval", 1.0)),
        ),
        log_level=os.getenv("CONTEXTMEM_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
