"""
LLM Provider Factory

Factory and registry for creating LLM provider instances based on configuration.
Supports the Google (Gemini) and Local (Ollama) providers.
"""

import logging
from typing import Literal

from stylechat.config import LLMSettings
from stylechat.llm.base import BaseLLMProvider
from stylechat.llm.google import GoogleProvider
from stylechat.llm.local import LocalProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """
    Factory for creating LLM provider instances.

    Handles provider selection and configuration.
    """

    # Registry of available providers
    PROVIDERS = {
        "google": GoogleProvider,
        "local": LocalProvider,
    }

    @staticmethod
    def create_provider(
        provider_type: Literal["google", "local"],
        config: LLMSettings,
    ) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Args:
            provider_type: Type of provider to create
            config: LLM configuration settings

        Returns:
            Configured provider instance

        Raises:
            ValueError: If provider type is unknown or required config is missing
        """
        if provider_type not in LLMProviderFactory.PROVIDERS:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {list(LLMProviderFactory.PROVIDERS.keys())}"
            )

        logger.info(f"Creating {provider_type} provider", extra={"provider": provider_type})

        if provider_type == "google":
            return LLMProviderFactory._create_google(config)
        elif provider_type == "local":
            return LLMProviderFactory._create_local(config)

        # This should never be reached due to the check above
        raise ValueError(f"Provider {provider_type} not implemented")  # pragma: no cover

    @staticmethod
    def create_default_provider(config: LLMSettings) -> BaseLLMProvider:
        """Create provider using default_provider from config."""
        return LLMProviderFactory.create_provider(config.default_provider, config)

    @staticmethod
    def _create_google(config: LLMSettings) -> GoogleProvider:
        """Create Google provider instance."""
        if not config.google_api_key:
            raise ValueError("Google API key is required but not configured")

        return GoogleProvider(
            api_key=config.google_api_key,
            model=config.google_model,
            temperature=config.temperature,
            top_p=config.top_p,
            top_k=config.top_k,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    @staticmethod
    def _create_local(config: LLMSettings) -> LocalProvider:
        """Create Local provider instance."""
        return LocalProvider(
            base_url=config.local_base_url,
            model=config.local_model,
            temperature=config.temperature,
            top_p=config.top_p,
            top_k=config.top_k,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )
