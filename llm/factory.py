"""Factory for creating LLM provider instances."""

from config import Config
from llm.providers.base import LLMProvider
from llm.providers.openai import OpenAIProvider
from logger import get_logger

logger = get_logger()

OLLAMA_BASE_URL = "http://localhost:11434/v1"


def get_llm_provider(config: Config) -> LLMProvider:
    """Create an LLM provider instance based on configuration.

    Args:
        config: Application configuration.

    Returns:
        LLMProvider instance.

    Raises:
        ValueError: If the provider is unknown or its settings are invalid.
    """
    provider_name = config.llm_provider

    if provider_name == "ollama":
        base_url = config.llm_base_url or OLLAMA_BASE_URL
        logger.info(f"Initializing Ollama provider at {base_url} (model: {config.llm_model})")

        # Ollama ignores the key but the client requires one
        return OpenAIProvider(
            api_key=config.llm_api_key or "ollama",
            model=config.llm_model,
            base_url=base_url,
            timeout=config.llm_timeout_seconds,
        )

    elif provider_name == "openai":
        if not config.llm_api_key:
            raise ValueError("OpenAI provider selected but llm api_key not configured")

        logger.info(f"Initializing OpenAI provider (model: {config.llm_model})")

        return OpenAIProvider(
            api_key=config.llm_api_key,
            model=config.llm_model,
            base_url=config.llm_base_url or None,
            timeout=config.llm_timeout_seconds,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
