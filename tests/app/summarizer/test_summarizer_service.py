"""
Tests for SummarizerService.
"""

import pytest

from app.summarizer.service import SUMMARIZE_PROMPT, SummarizerService
from tests.scorecard_core.evals.fakes import FakeLLM


class TestSummarizerService:
    """Tests for the summarize() call."""

    @pytest.mark.asyncio
    async def test_sends_text_in_prompt(self):
        """The source text is embedded in the summarize prompt."""
        llm = FakeLLM(text="  Short summary.  \n")
        service = SummarizerService(llm=llm)

        summary = await service.summarize("A long article about tides.")

        assert summary == "Short summary."
        assert llm.calls[0]["prompt"] == SUMMARIZE_PROMPT.format(text="A long article about tides.")
        assert llm.calls[0]["system"] is None

    @pytest.mark.asyncio
    async def test_custom_prompt_template(self):
        llm = FakeLLM()
        service = SummarizerService(llm=llm, prompt_template="TL;DR: {text}")

        await service.summarize("text")

        assert llm.calls[0]["prompt"] == "TL;DR: text"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n"])
    async def test_empty_input_rejected(self, text):
        """Empty text raises before any LLM call."""
        llm = FakeLLM()

        with pytest.raises(ValueError):
            await SummarizerService(llm=llm).summarize(text)

        assert llm.calls == []
