"""Consumer boundary — feed assembled context to a text generator and record replies.

The generator itself (a local or remote model) lives outside this package;
anything satisfying the Generator protocol can be plugged in.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextmem.engine import ContextEngine

logger = logging.getLogger(__name__)

RESPONSE_SOURCE = "LLM Response"

ANALYZE_PROMPT = """\
Analyze the following text captured from the user's screen and give a useful summary:

{context}
Captured text:
{text}

Please provide:
1. A concise summary of the content
2. The key points or important information
3. Relevant suggestions or insights
4. How it relates to the user's history (if relevant)
"""

ASK_PROMPT = """\
{prompt}

{context}
Use the history above to answer. If there is no relevant context, say so.
"""

SUGGEST_PROMPT = """\
You are a proactive assistant. Based ONLY on what the user is looking at NOW,
write ONE short, directly actionable suggestion of how you can help right now.
Ignore older context. Reply with the suggestion text only.

{context}"""

SUMMARIZE_PROMPT = """\
Summarize in one short paragraph what the user is currently doing and focused on,
based on the context below. Reply with the summary only.

{context}"""


class Backend(Enum):
    """Known inference backends, each carrying its own display metadata."""

    FOUNDATION = ("foundation", "Foundation Models", "Native on-device model")
    OLLAMA = ("ollama", "Ollama Standalone", "Local offline model server")
    CUSTOM = ("custom", "Custom", "Caller-supplied generator")

    def __init__(self, key: str, display_name: str, description: str) -> None:
        self.key = key
        self.display_name = display_name
        self.description = description


class BackendUnavailableError(RuntimeError):
    """The selected backend cannot serve requests right now."""


@runtime_checkable
class Generator(Protocol):
    """Protocol that text-generation backends must implement."""

    @property
    def backend(self) -> Backend: ...

    @property
    def is_available(self) -> bool: ...

    async def generate(self, prompt: str) -> str:
        """Return the model's reply to the prompt."""
        ...


class ContextualResponder:
    """Routes prompts through the engine's context and records the replies.

    One asyncio.Lock serializes calls so the engine keeps a single writer.
    """

    def __init__(
        self,
        engine: ContextEngine,
        generator: Generator,
        model: str | None = None,
    ) -> None:
        self.engine = engine
        self.generator = generator
        self.model = model or generator.backend.key
        self._lock = asyncio.Lock()

    async def analyze(
        self,
        text: str,
        source: str = "OCR",
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Record captured text, then ask for an analysis informed by history."""
        async with self._lock:
            meta = {
                "text_length": str(len(text)),
                "word_count": str(len(text.split())),
                **(metadata or {}),
            }
            self.engine.add_entry(text, source, meta)
            context = self.engine.assemble_similarity_context(text)
            return await self._generate(ANALYZE_PROMPT.format(context=context, text=text))

    async def ask(self, prompt: str) -> str:
        """Answer a free-form prompt using history only."""
        async with self._lock:
            context = self.engine.assemble_similarity_context(prompt)
            return await self._generate(ASK_PROMPT.format(prompt=prompt, context=context))

    async def suggest(self, text: str, source: str = "OCR") -> str:
        """One actionable suggestion based on the two latest entries."""
        async with self._lock:
            self.engine.add_entry(
                text,
                source,
                {"text_length": str(len(text)), "for_suggestion": "true"},
            )
            context = self.engine.assemble_recent_context(limit=2)
            return await self._generate(SUGGEST_PROMPT.format(context=context))

    async def summarize(self, query: str = "") -> str:
        """Refresh the running summary from the generator's digest of current context."""
        async with self._lock:
            context = self.engine.assemble_summarized_context(query)
            summary = await self._generate(SUMMARIZE_PROMPT.format(context=context), record=False)
            self.engine.record_summary(summary)
            return summary

    async def _generate(self, prompt: str, record: bool = True) -> str:
        backend = self.generator.backend
        if not self.generator.is_available:
            raise BackendUnavailableError(f"{backend.display_name} is not available")

        logger.info("Sending prompt to %s (%d chars)", backend.display_name, len(prompt))
        try:
            response = await self.generator.generate(prompt)
        except Exception as e:
            logger.error("%s generation failed: %s", backend.display_name, e)
            raise

        logger.info("Received %d chars from %s", len(response), backend.display_name)
        if record:
            self.engine.add_entry(
                response,
                RESPONSE_SOURCE,
                {
                    "model": self.model,
                    "backend": backend.display_name,
                    "prompt_length": str(len(prompt)),
                    "response_length": str(len(response)),
                },
            )
        return response
