"""Tests for the consumer boundary: backends and the contextual responder."""

from __future__ import annotations

import asyncio

import pytest

from contextmem.consumers import (
    RESPONSE_SOURCE,
    Backend,
    BackendUnavailableError,
    ContextualResponder,
    Generator,
)
from contextmem.engine import ContextEngine
from contextmem.memory.assembler import CURRENT_HEADER


class MockGenerator:
    def __init__(self, response_text: str = "Mock response", available: bool = True):
        self._response_text = response_text
        self._available = available
        self.prompts: list[str] = []

    @property
    def backend(self) -> Backend:
        return Backend.OLLAMA

    @property
    def is_available(self) -> bool:
        return self._available

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self._response_text


class FailingGenerator(MockGenerator):
    async def generate(self, prompt: str) -> str:
        raise ConnectionError("backend went away")


@pytest.fixture
def generator() -> MockGenerator:
    return MockGenerator()


@pytest.fixture
def responder(engine: ContextEngine, generator: MockGenerator) -> ContextualResponder:
    return ContextualResponder(engine, generator)


class TestBackend:
    def test_display_metadata(self):
        assert Backend.FOUNDATION.display_name == "Foundation Models"
        assert Backend.OLLAMA.display_name == "Ollama Standalone"
        assert Backend.OLLAMA.key == "ollama"
        assert Backend.CUSTOM.description

    def test_mock_satisfies_protocol(self, generator: MockGenerator):
        assert isinstance(generator, Generator)


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_records_input_and_response(
        self, responder: ContextualResponder, engine: ContextEngine, generator: MockGenerator
    ):
        result = await responder.analyze("texto da tela", metadata={"app": "Editor"})

        assert result == "Mock response"
        captured, response = engine.entries
        assert captured.source == "OCR"
        assert captured.metadata == {"text_length": "13", "word_count": "3", "app": "Editor"}
        assert response.source == RESPONSE_SOURCE
        assert response.content == "Mock response"
        assert response.metadata["model"] == "ollama"
        assert response.metadata["backend"] == "Ollama Standalone"
        assert response.metadata["prompt_length"] == str(len(generator.prompts[0]))
        assert response.metadata["response_length"] == "13"

    @pytest.mark.asyncio
    async def test_prompt_includes_text_and_history(
        self, responder: ContextualResponder, engine: ContextEngine, generator: MockGenerator
    ):
        engine.add_entry("shared vocabulary for the notes", "OCR")
        await responder.analyze("shared vocabulary query")
        prompt = generator.prompts[0]
        assert "Captured text:\nshared vocabulary query" in prompt
        assert "shared vocabulary for the notes" in prompt

    @pytest.mark.asyncio
    async def test_unavailable_backend(self, engine: ContextEngine):
        responder = ContextualResponder(engine, MockGenerator(available=False))
        with pytest.raises(BackendUnavailableError, match="Ollama Standalone"):
            await responder.analyze("texto")
        assert [e.source for e in engine.entries] == ["OCR"]

    @pytest.mark.asyncio
    async def test_generation_error_propagates(self, engine: ContextEngine):
        responder = ContextualResponder(engine, FailingGenerator())
        with pytest.raises(ConnectionError):
            await responder.ask("pergunta")
        assert engine.entries == ()


class TestSuggestAndSummarize:
    @pytest.mark.asyncio
    async def test_suggest_uses_recent_context(
        self, responder: ContextualResponder, engine: ContextEngine, generator: MockGenerator
    ):
        engine.add_entry("mais antiga", "OCR")
        await responder.suggest("tela atual")
        captured = engine.entries[1]
        assert captured.metadata["for_suggestion"] == "true"
        assert CURRENT_HEADER in generator.prompts[0]
        assert "tela atual" in generator.prompts[0]

    @pytest.mark.asyncio
    async def test_summarize_records_summary_only(self, engine: ContextEngine):
        generator = MockGenerator("user is writing a report")
        responder = ContextualResponder(engine, generator)
        engine.add_entry("rascunho do relatório", "OCR")

        summary = await responder.summarize()

        assert summary == "user is writing a report"
        assert engine.summary_text == "user is writing a report"
        assert [e.source for e in engine.entries] == ["OCR"]

    @pytest.mark.asyncio
    async def test_calls_serialized(self, engine: ContextEngine):
        class SlowGenerator(MockGenerator):
            def __init__(self):
                super().__init__()
                self.active = 0
                self.max_active = 0

            async def generate(self, prompt: str) -> str:
                self.active += 1
                self.max_active = max(self.max_active, self.active)
                await asyncio.sleep(0.01)
                self.active -= 1
                return "ok"

        generator = SlowGenerator()
        responder = ContextualResponder(engine, generator)
        await asyncio.gather(*(responder.ask(f"q{i}") for i in range(3)))
        assert generator.max_active == 1
