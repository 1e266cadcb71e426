"""
LLM Provider Module

Provider abstraction for the generation capability (Gemini and local models).

Usage:
    from stylechat.llm import LLMProviderFactory, LLMRequest
    from stylechat.config import get_settings
    from stylechat.models import ConversationTurn

    provider = LLMProviderFactory.create_default_provider(get_settings().llm)

    request = LLMRequest(contents=[ConversationTurn.user_text("Hello!")])
    response = await provider.generate(request)
    print(response.content)
"""

from stylechat.llm.base import BaseLLMProvider
from stylechat.llm.factory import LLMProviderFactory
from stylechat.llm.google import GoogleProvider
from stylechat.llm.local import LocalProvider
from stylechat.llm.models import (
    LLMRequest,
    LLMResponse,
    LLMStreamChunk,
    LLMUsage,
)

__all__ = [
    # Base classes
    "BaseLLMProvider",
    # Models
    "LLMRequest",
    "LLMResponse",
    "LLMStreamChunk",
    "LLMUsage",
    # Factory
    "LLMProviderFactory",
    # Providers
    "GoogleProvider",
    "LocalProvider",
]
