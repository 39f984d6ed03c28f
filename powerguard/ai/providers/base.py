"""
Base AI Provider - Abstract interface for all language-model backends.

This module defines the contract every backend follows, so the classifier
and synthesizer can run against Gemini, OpenAI, Anthropic or the offline
provider without code changes.

Two calling styles are offered:
- generate() / generate_json() never raise; failures come back as
  AIResponse(success=False, error=...).
- complete() raises ModelClientError on failure. The synthesizer uses it
  because the orchestrator, not the synthesizer, owns fallback policy.

Example:
    provider = GeminiProvider(api_key="...")
    response = await provider.generate("Which apps drain my battery?")
    print(response.content)
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Any, Dict
from enum import Enum
import logging

from powerguard.core.exceptions import ModelClientError

logger = logging.getLogger("powerguard.ai.providers")


class ProviderType(str, Enum):
    """Enum of supported language-model backends."""
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OFFLINE = "offline"


@dataclass
class TokenUsage:
    """Token usage statistics for a single model call."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        """Calculate total if not provided."""
        if self.total_tokens == 0:
            self.total_tokens = self.prompt_tokens + self.completion_tokens


@dataclass
class AIResponse:
    """
    Standardized response from any provider.

    Attributes:
        content: The generated text (empty on failure)
        provider: Which provider generated this response
        model: The specific model used
        usage: Token usage statistics
        latency_ms: How long the request took
        success: Whether the request succeeded
        error: Error message if failed
        metadata: Additional provider-specific data
        created_at: Timestamp of the response
    """
    content: str
    provider: ProviderType
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    latency_ms: float = 0.0
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "content": self.content[:100] + "..." if len(self.content) > 100 else self.content,
            "provider": self.provider.value,
            "model": self.model,
            "tokens": {
                "prompt": self.usage.prompt_tokens,
                "completion": self.usage.completion_tokens,
                "total": self.usage.total_tokens,
            },
            "latency_ms": self.latency_ms,
            "success": self.success,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
        }


class AIProvider(ABC):
    """
    Abstract base class for language-model providers.

    Subclasses implement generate() and generate_json(); both must catch
    SDK errors and report them through AIResponse.error.

    Usage:
        class MyProvider(AIProvider):
            provider_type = ProviderType.OPENAI

            async def generate(self, prompt, **kwargs):
                ...
    """

    provider_type: ProviderType
    model: str = ""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs
    ) -> AIResponse:
        """
        Generate a free-text response.

        Args:
            prompt: The full prompt
            system_prompt: Optional system instructions for the model
            temperature: Sampling temperature (0 = deterministic)
            max_tokens: Maximum tokens in the response

        Returns:
            AIResponse with the generated content. Never raises.
        """
        pass

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """
        Generate a response constrained to JSON where the backend supports it.

        Returns:
            AIResponse whose content should hold a JSON object. Never raises.
        """
        pass

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 1024,
    ) -> str:
        """
        Send a prompt and return the raw text.

        Raises:
            ModelClientError: if the backend reported a failure
        """
        response = await self.generate(
            prompt=prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.success:
            raise ModelClientError(
                response.error or "Unknown provider error",
                provider=self.provider_type.value,
            )
        return response.content

    def _measure_latency(self, start_time: float) -> float:
        """Calculate latency in milliseconds."""
        return (time.time() - start_time) * 1000

    def _create_error_response(
        self,
        error: str,
        model: str,
        latency_ms: float = 0.0
    ) -> AIResponse:
        """Create a standardized error response."""
        logger.error(f"AI Provider Error [{self.provider_type.value}]: {error}")
        return AIResponse(
            content="",
            provider=self.provider_type,
            model=model,
            latency_ms=latency_ms,
            success=False,
            error=error,
        )
