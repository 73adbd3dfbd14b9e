"""
SupportBotService: drafts customer-support replies.

The reply is grounded in the supplied context only; when the context does
not resolve the query the bot says the issue will be raised with a
supervisor.
"""

from __future__ import annotations

from loguru import logger

from scorecard_core.config import settings
from scorecard_core.infrastructure.llm import LLMClient

SUPPORT_SYSTEM_PROMPT = """Write a draft reply that is:
- Helpful and correct
- Professional and empathetic
- Clearly structured (bullets or short paragraphs)
- Safe and policy-compliant
- Responses must be shorter than {max_words} words.
- Responses cannot contain new information that is not in the provided context.
- When you don't have enough information to resolve a customer's query tell them that you will raise this issue with your supervisor and get back to them with more details or options.
Do not ask for passwords or sensitive data.
Context: {context}"""


class SupportBotService:
    """
    Customer-support reply drafting.

    Usage:
        reply = await SupportBotService().reply("How do I reset my password?", context=faq)
    """

    def __init__(self, llm: LLMClient | None = None, max_words: int | None = None):
        self._llm = llm or LLMClient()
        self.max_words = max_words or settings.SUPPORT_MAX_WORDS

    def system_prompt(self, context: str | None) -> str:
        return SUPPORT_SYSTEM_PROMPT.format(
            max_words=self.max_words,
            context=context or "(none provided)",
        )

    async def reply(self, query: str, context: str | None = None) -> str:
        if not query or not query.strip():
            raise ValueError("Customer query is empty")

        logger.info(f"Drafting support reply for: '{query[:50]}...'")
        text = await self._llm.complete(query, system=self.system_prompt(context))
        return text.strip()
