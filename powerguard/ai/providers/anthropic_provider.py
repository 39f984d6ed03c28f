"""
Anthropic Provider - Claude client.

Alternative backend selected with LLM_PROVIDER=anthropic. Claude has no
native JSON mode, so generate_json() relies on instructions and the
downstream JSON locator tolerates any prose around the object.
"""

import time
import logging
from typing import Optional

from anthropic import AsyncAnthropic

from powerguard.core.config import settings
from powerguard.ai.providers.base import (
    AIProvider,
    AIResponse,
    ProviderType,
    TokenUsage
)

logger = logging.getLogger("powerguard.ai.providers.anthropic")


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider implementation."""

    provider_type = ProviderType.ANTHROPIC

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        self.model = model or settings.ANTHROPIC_MODEL
        self.api_key = api_key or settings.ANTHROPIC_API_KEY

        if self.api_key:
            self._client = AsyncAnthropic(api_key=self.api_key, timeout=settings.AI_REQUEST_TIMEOUT)
            logger.info(f"Anthropic provider initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning("Anthropic API key not configured - provider unavailable")

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs
    ) -> AIResponse:
        return await self._create_message(
            prompt=prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        json_system = (system_prompt or "") + (
            "\n\nIMPORTANT: You must respond with valid JSON only. "
            "No explanation, no markdown code blocks - just the raw JSON object."
        )
        return await self._create_message(
            prompt=prompt,
            system_prompt=json_system,
            temperature=0.1,
            max_tokens=kwargs.get("max_tokens", 512),
        )

    async def _create_message(
        self,
        prompt: str,
        system_prompt: Optional[str],
        temperature: float,
        max_tokens: int,
    ) -> AIResponse:
        start_time = time.time()

        if not self._client:
            return self._create_error_response(
                error="Anthropic API key not configured",
                model=self.model,
                latency_ms=self._measure_latency(start_time)
            )

        try:
            request_params = {
                "model": self.model,
                "max_tokens": max_tokens,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature,
            }
            if system_prompt:
                request_params["system"] = system_prompt

            response = await self._client.messages.create(**request_params)
            latency_ms = self._measure_latency(start_time)

            # Claude returns a list of content blocks
            content = "".join(
                block.text for block in (response.content or []) if hasattr(block, "text")
            )

            usage = TokenUsage(
                prompt_tokens=response.usage.input_tokens if response.usage else 0,
                completion_tokens=response.usage.output_tokens if response.usage else 0,
            )
            logger.info(f"Anthropic request completed in {latency_ms:.0f}ms, tokens: {usage.total_tokens}")

            return AIResponse(
                content=content.strip(),
                provider=self.provider_type,
                model=self.model,
                usage=usage,
                latency_ms=latency_ms,
                success=True,
            )

        except Exception as e:
            logger.error(f"Anthropic generation failed: {e}")
            return self._create_error_response(
                error=str(e),
                model=self.model,
                latency_ms=self._measure_latency(start_time)
            )
