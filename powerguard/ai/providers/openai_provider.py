"""
OpenAI Provider - GPT client.

Alternative backend selected with LLM_PROVIDER=openai. Uses the async client
and OpenAI's JSON mode for the classifier call.

API Documentation: https://platform.openai.com/docs/api-reference
"""

import time
import json
import logging
from typing import Optional

from openai import AsyncOpenAI

from powerguard.core.config import settings
from powerguard.ai.providers.base import (
    AIProvider,
    AIResponse,
    ProviderType,
    TokenUsage
)

logger = logging.getLogger("powerguard.ai.providers.openai")


class OpenAIProvider(AIProvider):
    """
    OpenAI GPT provider implementation.

    Usage:
        provider = OpenAIProvider(api_key="sk-...")
        response = await provider.generate("Which apps use the most data?")
    """

    provider_type = ProviderType.OPENAI

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        """
        Args:
            model: Model name (default: from settings.OPENAI_MODEL)
            api_key: API key (default: from settings.OPENAI_API_KEY)
        """
        self.model = model or settings.OPENAI_MODEL
        self.api_key = api_key or settings.OPENAI_API_KEY

        if self.api_key:
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=settings.AI_REQUEST_TIMEOUT)
            logger.info(f"OpenAI provider initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning("OpenAI API key not configured - provider unavailable")

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs
    ) -> AIResponse:
        start_time = time.time()

        if not self._client:
            return self._create_error_response(
                error="OpenAI API key not configured",
                model=self.model,
                latency_ms=self._measure_latency(start_time)
            )

        try:
            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

            latency_ms = self._measure_latency(start_time)
            usage = self._extract_usage(response)
            logger.info(f"OpenAI request completed in {latency_ms:.0f}ms, tokens: {usage.total_tokens}")

            return AIResponse(
                content=response.choices[0].message.content or "",
                provider=self.provider_type,
                model=self.model,
                usage=usage,
                latency_ms=latency_ms,
                success=True,
            )

        except Exception as e:
            logger.error(f"OpenAI generation failed: {e}")
            return self._create_error_response(
                error=str(e),
                model=self.model,
                latency_ms=self._measure_latency(start_time)
            )

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """Generate a JSON object using OpenAI's JSON response format."""
        start_time = time.time()

        if not self._client:
            return self._create_error_response(
                error="OpenAI API key not configured",
                model=self.model,
                latency_ms=self._measure_latency(start_time)
            )

        try:
            system_content = (system_prompt or "") + "\n\nYou must respond with valid JSON only, no explanation."
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_content},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.1,
                max_tokens=kwargs.get("max_tokens", 512),
                response_format={"type": "json_object"},
            )

            latency_ms = self._measure_latency(start_time)
            content = response.choices[0].message.content or "{}"

            try:
                json.loads(content)
            except json.JSONDecodeError as e:
                logger.warning(f"OpenAI returned invalid JSON: {e}")
                return self._create_error_response(
                    error=f"Invalid JSON response: {e}",
                    model=self.model,
                    latency_ms=latency_ms
                )

            return AIResponse(
                content=content,
                provider=self.provider_type,
                model=self.model,
                usage=self._extract_usage(response),
                latency_ms=latency_ms,
                success=True,
            )

        except Exception as e:
            logger.error(f"OpenAI JSON generation failed: {e}")
            return self._create_error_response(
                error=str(e),
                model=self.model,
                latency_ms=self._measure_latency(start_time)
            )

    @staticmethod
    def _extract_usage(response) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=response.usage.prompt_tokens if response.usage else 0,
            completion_tokens=response.usage.completion_tokens if response.usage else 0,
        )
