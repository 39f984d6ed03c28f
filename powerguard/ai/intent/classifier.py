"""
Intent Classifier - Turns a free-text resource query into a QueryAnalysis.

The classifier:
1. Takes raw text ("Notify me when TikTok uses 2GB")
2. Calls the injected provider with the few-shot classification prompt
3. Locates the JSON object in the reply and validates it
4. Falls back to deterministic keyword rules on ANY failure

classify() never raises. A backend outage, a reply with no JSON in it, a
schema violation and a category outside 1-4 all end in the keyword rules,
so the orchestrator always receives a usable analysis.

Keyword Priority:
=================
0. "notify" / "alert" anywhere         → MONITORING (hard rule, both paths)
1. "can i", "will i", "enough"          → PREDICTIVE
2. "show", "list", "which", "what", ... → INFORMATION
3. "optimize", "save", "preserve"       → OPTIMIZATION
4. "warn"                               → MONITORING
5. anything else                        → INFORMATION

Predictive phrasing is checked before information phrasing because the two
share vocabulary ("how much battery... can I").
"""

import logging
import time
from typing import Optional

from pydantic import ValidationError

from powerguard.ai.providers.base import AIProvider
from powerguard.ai.prompts.classifier_prompts import CLASSIFIER_SYSTEM_PROMPT, CLASSIFIER_PROMPT
from powerguard.ai.response.payload import extract_json_object
from powerguard.ai.intent import keywords
from powerguard.ai.intent.schemas import (
    QueryCategory,
    ResourceType,
    ConditionType,
    ClassificationSource,
    ExtractedParameters,
    QueryAnalysis,
    Thresholds,
)
from powerguard.core.exceptions import PayloadParseError

logger = logging.getLogger("powerguard.ai.intent")


_CLASSIFIABLE = {
    QueryCategory.INFORMATION,
    QueryCategory.PREDICTIVE,
    QueryCategory.OPTIMIZATION,
    QueryCategory.MONITORING,
}


class IntentClassifier:
    """
    Classifies resource queries into the four-category taxonomy.

    The provider is injected; the classifier owns no client of its own.

    Usage:
        classifier = IntentClassifier(provider=GeminiProvider())
        analysis = await classifier.classify("Top 3 data apps today")

        analysis.category                 # QueryCategory.INFORMATION
        analysis.params.limit             # 3
        analysis.params.resource_type     # [ResourceType.DATA]
    """

    def __init__(self, provider: AIProvider):
        self.provider = provider
        logger.info(f"Intent classifier initialized with {provider.provider_type.value} provider")

    async def classify(self, query: str) -> QueryAnalysis:
        """
        Classify a query. Never raises.

        Args:
            query: Raw user text

        Returns:
            QueryAnalysis from the model when it produced a valid one,
            otherwise from the keyword rules
        """
        if not query or not query.strip():
            logger.info("Empty query, classified as INVALID")
            return QueryAnalysis(category=QueryCategory.INVALID, source=ClassificationSource.FALLBACK)

        start_time = time.time()
        prompt = CLASSIFIER_PROMPT.format(query=query.replace('"', "'"))

        response = await self.provider.generate_json(
            prompt=prompt,
            system_prompt=CLASSIFIER_SYSTEM_PROMPT,
        )

        if not response.success:
            logger.warning(f"Classification call failed: {response.error}")
            return self.fallback(query)

        try:
            analysis = self._parse_analysis(response.content, query)
        except (PayloadParseError, ValidationError, ValueError, ArithmeticError) as e:
            logger.warning(f"Unusable classification reply, using keyword rules: {e}")
            return self.fallback(query)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(f"Classified query in {elapsed_ms:.0f}ms: {analysis.category.name}")
        return analysis

    def fallback(self, query: str) -> QueryAnalysis:
        """Keyword-rule classification, also used on classification timeout."""
        analysis = classify_by_keywords(query)
        logger.info(f"Keyword rules classified query as {analysis.category.name}")
        return analysis

    def _parse_analysis(self, content: str, query: str) -> QueryAnalysis:
        """
        Validate the model's classification.

        Raises:
            PayloadParseError: no JSON object in the reply
            ValidationError: the object does not fit QueryAnalysis
            ValueError: the category is outside 1-4
        """
        data = extract_json_object(content)
        data.pop("source", None)
        analysis = QueryAnalysis.model_validate(data)

        if analysis.category not in _CLASSIFIABLE:
            raise ValueError(f"Model returned unusable category {analysis.category!r}")

        if keywords.has_alert_trigger(query) and analysis.category != QueryCategory.MONITORING:
            logger.info(f"Alert phrasing overrides model category {analysis.category.name}")
            return QueryAnalysis(
                category=QueryCategory.MONITORING,
                params=analysis.params,
                source=ClassificationSource.MODEL,
            )
        return analysis


# ---------------------------------------------------------------------------
# KEYWORD RULES
# ---------------------------------------------------------------------------

def categorize_by_keywords(query: str) -> QueryCategory:
    """Apply the fixed keyword priority to pick a category."""
    if not query or not query.strip():
        return QueryCategory.INVALID
    if keywords.has_alert_trigger(query):
        return QueryCategory.MONITORING
    if keywords.contains_any(query, keywords.PREDICTIVE_PHRASES):
        return QueryCategory.PREDICTIVE
    if keywords.contains_any(query, keywords.INFORMATION_PHRASES):
        return QueryCategory.INFORMATION
    if keywords.contains_any(query, keywords.OPTIMIZATION_PHRASES):
        return QueryCategory.OPTIMIZATION
    if keywords.contains_any(query, keywords.WARNING_PHRASES):
        return QueryCategory.MONITORING
    return QueryCategory.INFORMATION


def _resource_types(query: str) -> list:
    resources = []
    if keywords.mentions_battery(query):
        resources.append(ResourceType.BATTERY)
    if keywords.mentions_data(query):
        resources.append(ResourceType.DATA)
    return resources or [ResourceType.BATTERY]


def _condition_type(query: str, thresholds: Optional[Thresholds]) -> ConditionType:
    if keywords.contains_any(query, ("while using", "while")):
        return ConditionType.WHILE_USING
    if keywords.contains_any(query, ("more than", "exceeds", "exceed", "over", "above")):
        return ConditionType.EXCEEDS_USAGE
    if keywords.contains_any(query, ("drops", "drop", "reaches", "below", "falls", "hits", "under")):
        return ConditionType.REACHES_THRESHOLD
    if thresholds is not None and thresholds.data is not None:
        return ConditionType.EXCEEDS_USAGE
    return ConditionType.REACHES_THRESHOLD


def classify_by_keywords(query: str) -> QueryAnalysis:
    """
    Model-free classification plus best-effort parameter extraction.

    Example:
        >>> a = classify_by_keywords("Alert me if TikTok uses more than 2GB")
        >>> a.category, a.params.thresholds.data
        (<QueryCategory.MONITORING: 4>, 2000)
    """
    category = categorize_by_keywords(query)
    if category == QueryCategory.INVALID:
        return QueryAnalysis(category=category, source=ClassificationSource.FALLBACK)

    battery_threshold = keywords.find_battery_threshold(query)
    data_threshold = keywords.find_data_threshold_mb(query)
    thresholds = None
    if battery_threshold is not None or data_threshold is not None:
        thresholds = Thresholds(battery=battery_threshold, data=data_threshold)

    priority_apps = keywords.find_priority_apps(query)
    apps = [app for app in keywords.find_known_apps(query) if app not in priority_apps]
    app_categories = [
        keywords.KNOWN_APP_CATEGORIES[app] for app in apps if app in keywords.KNOWN_APP_CATEGORIES
    ]

    params = ExtractedParameters(
        apps=apps or None,
        app_categories=app_categories or None,
        duration=keywords.find_duration(query),
        time_period=keywords.find_time_period(query),
        resource_type=_resource_types(query),
        thresholds=thresholds,
        limit=keywords.find_limit(query),
        context=keywords.find_context(query),
        priority_apps=priority_apps or None,
        condition_type=_condition_type(query, thresholds) if category == QueryCategory.MONITORING else None,
    )
    return QueryAnalysis(category=category, params=params, source=ClassificationSource.FALLBACK)
