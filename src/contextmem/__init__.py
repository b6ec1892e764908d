"""contextmem — bounded contextual memory with weighted retrieval."""

from contextmem.config import ContextConfig, load_config
from contextmem.engine import ContextEngine
from contextmem.memory.assembler import NO_CONTEXT
from contextmem.memory.models import Entry, ScoredEntry

__version__ = "0.1.0"

__all__ = [
    "NO_CONTEXT",
    "ContextConfig",
    "ContextEngine",
    "Entry",
    "ScoredEntry",
    "load_config",
]
