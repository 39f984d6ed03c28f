"""
AI Providers Module - Interchangeable language-model backends.

Each provider has the same interface:
    response = await provider.generate(prompt, **kwargs)
    text = await provider.complete(prompt)   # raises ModelClientError

Providers are constructed by the caller and injected into the pipeline;
get_provider() builds one from settings.
"""

from typing import Optional

from powerguard.core.config import settings
from powerguard.ai.providers.base import AIProvider, AIResponse, ProviderType, TokenUsage
from powerguard.ai.providers.gemini import GeminiProvider
from powerguard.ai.providers.openai_provider import OpenAIProvider
from powerguard.ai.providers.anthropic_provider import AnthropicProvider
from powerguard.ai.providers.offline import OfflineProvider


_PROVIDER_CLASSES = {
    ProviderType.GEMINI: GeminiProvider,
    ProviderType.OPENAI: OpenAIProvider,
    ProviderType.ANTHROPIC: AnthropicProvider,
    ProviderType.OFFLINE: OfflineProvider,
}


def get_provider(name: Optional[str] = None) -> AIProvider:
    """
    Build a provider by name (default: settings.LLM_PROVIDER).

    Raises:
        ValueError: if the name is not a known provider
    """
    provider_name = (name or settings.LLM_PROVIDER).strip().lower()
    try:
        provider_type = ProviderType(provider_name)
    except ValueError:
        raise ValueError(f"Unknown LLM provider: {provider_name}") from None
    return _PROVIDER_CLASSES[provider_type]()


__all__ = [
    "AIProvider",
    "AIResponse",
    "ProviderType",
    "TokenUsage",
    "GeminiProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "OfflineProvider",
    "get_provider",
]
