"""
Gemini Provider - Google's GenAI SDK.

Default backend for both the classifier and the synthesizer: fast, cheap and
with a native JSON response mode. Calls go through client.aio so the event
loop is never blocked while the model is thinking.
"""

import time
import logging
from typing import Optional

from google import genai
from google.genai import types

from powerguard.core.config import settings
from powerguard.ai.providers.base import (
    AIProvider,
    AIResponse,
    ProviderType,
    TokenUsage
)

logger = logging.getLogger("powerguard.ai.providers.gemini")


class GeminiProvider(AIProvider):
    provider_type = ProviderType.GEMINI

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        self.model = model or settings.GEMINI_MODEL
        self.api_key = api_key or settings.GEMINI_API_KEY

        if self.api_key:
            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"Gemini provider initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning("Gemini API key not configured")

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
            return self._error("Gemini API key not configured", start_time)

        try:
            config = types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
                system_instruction=system_prompt,
            )
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )

            latency_ms = self._measure_latency(start_time)
            usage = self._extract_usage(response)
            logger.info(f"Gemini request completed in {latency_ms:.0f}ms, tokens: {usage.total_tokens}")

            return AIResponse(
                content=response.text or "",
                provider=self.provider_type,
                model=self.model,
                usage=usage,
                latency_ms=latency_ms,
                success=True,
            )

        except Exception as e:
            logger.error(f"Gemini generation failed: {e}")
            return self._error(str(e), start_time)

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        start_time = time.time()

        if not self._client:
            return self._error("Gemini API key not configured", start_time)

        try:
            config = types.GenerateContentConfig(
                temperature=0.1,
                max_output_tokens=kwargs.get("max_tokens", 512),
                response_mime_type="application/json",
                system_instruction=system_prompt,
            )
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=f"{prompt}\n\nIMPORTANT: Respond ONLY with valid JSON.",
                config=config,
            )

            content = (response.text or "").strip()
            if content.startswith("```json"):
                content = content[7:-3].strip()

            latency_ms = self._measure_latency(start_time)

            return AIResponse(
                content=content,
                provider=self.provider_type,
                model=self.model,
                usage=self._extract_usage(response),
                latency_ms=latency_ms,
                success=True,
            )

        except Exception as e:
            logger.error(f"Gemini JSON generation failed: {e}")
            return self._error(str(e), start_time)

    def _extract_usage(self, response) -> TokenUsage:
        # usage_metadata is None when the backend reports nothing
        metadata = response.usage_metadata
        if not metadata:
            return TokenUsage()
        return TokenUsage(
            prompt_tokens=metadata.prompt_token_count or 0,
            completion_tokens=metadata.candidates_token_count or 0,
        )

    def _error(self, msg: str, start_time: float) -> AIResponse:
        return self._create_error_response(
            error=msg, model=self.model, latency_ms=self._measure_latency(start_time)
        )
