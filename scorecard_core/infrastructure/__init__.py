"""
External service adapters for scorecard (OpenAI chat and embeddings).
"""

from scorecard_core.infrastructure.llm import LLMClient, map_openai_error
from scorecard_core.infrastructure.openai_client import OpenAIClientSingleton, get_openai_client

__all__ = [
    "LLMClient",
    "map_openai_error",
    "OpenAIClientSingleton",
    "get_openai_client",
]
