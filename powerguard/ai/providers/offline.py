"""
Offline Provider - A backend that is never available.

Selected with LLM_PROVIDER=offline, or injected by callers that know the
device has no connectivity. Every call reports failure immediately, so the
classifier drops to its keyword rules and the orchestrator takes the offline
fallback path without waiting on a timeout.
"""

import logging
from typing import Optional

from powerguard.ai.providers.base import AIProvider, AIResponse, ProviderType

logger = logging.getLogger("powerguard.ai.providers.offline")


class OfflineProvider(AIProvider):
    provider_type = ProviderType.OFFLINE

    def __init__(self, reason: str = "Language model unavailable (offline mode)"):
        self.model = "none"
        self.reason = reason

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs
    ) -> AIResponse:
        return self._unavailable()

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        return self._unavailable()

    def _unavailable(self) -> AIResponse:
        logger.debug(self.reason)
        return AIResponse(
            content="",
            provider=self.provider_type,
            model=self.model,
            success=False,
            error=self.reason,
        )
