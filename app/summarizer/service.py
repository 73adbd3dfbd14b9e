"""
SummarizerService: one-call text summarization.
"""

from __future__ import annotations

from loguru import logger

from scorecard_core.infrastructure.llm import LLMClient

SUMMARIZE_PROMPT = "Summarize the following text concisely:\n\n{text}"


class SummarizerService:
    """
    Summarizes free text with a single completion.

    Usage:
        summary = await SummarizerService().summarize(article)
    """

    def __init__(self, llm: LLMClient | None = None, prompt_template: str = SUMMARIZE_PROMPT):
        self._llm = llm or LLMClient()
        self.prompt_template = prompt_template

    async def summarize(self, text: str) -> str:
        if not text or not text.strip():
            raise ValueError("Nothing to summarize: input text is empty")

        logger.info(f"Summarizing {len(text.split())} words")
        summary = await self._llm.complete(self.prompt_template.format(text=text))
        return summary.strip()
