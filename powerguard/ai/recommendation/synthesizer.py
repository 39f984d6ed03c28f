"""
Recommendation Synthesizer - Builds the category prompt and asks the model.

Given a QueryAnalysis and a DeviceSnapshot, the synthesizer picks one of the
four instruction blocks, assembles the full prompt and returns the model's
raw payload. It does not interpret the payload; the normalizer does.

Failure Semantics:
==================
Unlike the classifier, the synthesizer does NOT mask failures. Backend
errors propagate as ModelClientError so the orchestrator, which owns the
fallback policy, can switch to the offline path. A category with no
instruction block (INVALID) raises InvalidCategoryError: that is a caller
bug, not bad input.
"""

import json
import logging
import time
from typing import Dict

from powerguard.core.config import settings
from powerguard.core.exceptions import InvalidCategoryError
from powerguard.telemetry.schemas import DeviceSnapshot
from powerguard.ai.actions.registry import actionable_registry
from powerguard.ai.providers.base import AIProvider
from powerguard.ai.intent.schemas import QueryAnalysis, QueryCategory
from powerguard.ai.prompts.recommendation_prompts import (
    BASE_PROMPT,
    INFORMATION_INSTRUCTIONS,
    PREDICTION_INSTRUCTIONS,
    OPTIMIZATION_INSTRUCTIONS,
    MONITORING_INSTRUCTIONS,
    INSIGHTS_ONLY_CONTRACT,
    ACTIONABLE_CONTRACT,
    format_device_data,
)

logger = logging.getLogger("powerguard.ai.recommendation")


_INSTRUCTIONS: Dict[QueryCategory, str] = {
    QueryCategory.INFORMATION: INFORMATION_INSTRUCTIONS,
    QueryCategory.PREDICTIVE: PREDICTION_INSTRUCTIONS,
    QueryCategory.OPTIMIZATION: OPTIMIZATION_INSTRUCTIONS.format(
        allowed_types=", ".join(t.value for t in actionable_registry.list_types())
    ),
    QueryCategory.MONITORING: MONITORING_INSTRUCTIONS,
}

_OUTPUT_CONTRACTS: Dict[QueryCategory, str] = {
    QueryCategory.INFORMATION: INSIGHTS_ONLY_CONTRACT,
    QueryCategory.PREDICTIVE: INSIGHTS_ONLY_CONTRACT,
    QueryCategory.OPTIMIZATION: ACTIONABLE_CONTRACT,
    QueryCategory.MONITORING: ACTIONABLE_CONTRACT,
}


class RecommendationSynthesizer:
    """
    Produces the raw recommendation payload for a classified query.

    Usage:
        synthesizer = RecommendationSynthesizer(provider=GeminiProvider())
        payload = await synthesizer.synthesize(analysis, snapshot)
    """

    def __init__(self, provider: AIProvider):
        self.provider = provider

    def build_prompt(self, analysis: QueryAnalysis, snapshot: DeviceSnapshot) -> str:
        """
        Assemble the full prompt for one query.

        Raises:
            InvalidCategoryError: no instruction block for the category
        """
        instructions = _INSTRUCTIONS.get(analysis.category)
        if instructions is None:
            raise InvalidCategoryError(analysis.category)

        if analysis.category == QueryCategory.INFORMATION:
            limit = analysis.params.limit or settings.DEFAULT_TOP_N
            instructions += f"\n\nRequested list size: exactly {limit} apps."

        return BASE_PROMPT.format(
            device_data=format_device_data(snapshot),
            analysis=json.dumps(analysis.to_prompt_dict(), indent=2),
            instructions=instructions,
            output_contract=_OUTPUT_CONTRACTS[analysis.category],
        )

    async def synthesize(self, analysis: QueryAnalysis, snapshot: DeviceSnapshot) -> str:
        """
        Ask the model for a recommendation.

        Returns:
            The raw payload (free text or text containing a JSON object)

        Raises:
            InvalidCategoryError: category is INVALID
            ModelClientError: the backend failed
        """
        prompt = self.build_prompt(analysis, snapshot)
        if settings.DEBUG:
            logger.debug(f"Recommendation prompt:\n{prompt}")

        start_time = time.time()
        payload = await self.provider.complete(
            prompt,
            temperature=settings.SYNTHESIS_TEMPERATURE,
            max_tokens=settings.SYNTHESIS_MAX_TOKENS,
        )
        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Recommendation for {analysis.category.name} received in {elapsed_ms:.0f}ms "
            f"({len(payload)} chars)"
        )
        return payload
