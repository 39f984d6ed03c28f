"""
Offline Analyzer - Answers a classified query from the snapshot alone.

Used when the recommendation model is unreachable, times out, or the
provider is configured as "offline". The rules are the same ones the
normalizer applies when the model returns nothing usable, so an
optimization query gets the same actionables either way.
"""

import logging
from typing import List

from powerguard.telemetry.schemas import DeviceSnapshot
from powerguard.ai.intent.schemas import QueryAnalysis, QueryCategory
from powerguard.ai.response import synthesis
from powerguard.ai.response.normalizer import DEGRADED_MESSAGE, category_insight
from powerguard.ai.schemas.analysis import (
    Actionable,
    AnalysisResult,
    EstimatedSavings,
    Insight,
    ResultSource,
)
from powerguard.core.exceptions import InvalidCategoryError

logger = logging.getLogger("powerguard.ai.pipeline")


class OfflineAnalyzer:
    """
    Deterministic analysis without a language model.

    Usage:
        result = OfflineAnalyzer().analyze(analysis, snapshot, query)
    """

    def analyze(self, analysis: QueryAnalysis, snapshot: DeviceSnapshot, query: str) -> AnalysisResult:
        """
        Raises:
            InvalidCategoryError: category is INVALID
        """
        category = analysis.category
        params = analysis.params
        insights: List[Insight] = []
        actionables: List[Actionable] = []

        if category == QueryCategory.INFORMATION:
            insights = synthesis.synthesize_information(query, snapshot, params)
        elif category == QueryCategory.PREDICTIVE:
            insights = synthesis.synthesize_prediction(query, snapshot, params)
        elif category == QueryCategory.OPTIMIZATION:
            actionables, extra_insights = synthesis.synthesize_optimization(query, snapshot, params)
            insights = self._summary(category, actionables) + extra_insights
        elif category == QueryCategory.MONITORING:
            actionables = synthesis.synthesize_monitoring_actionables(query, snapshot, params)
            insights = self._summary(category, actionables)
        else:
            raise InvalidCategoryError(category)

        if not insights:
            insights = [category_insight(category, DEGRADED_MESSAGE)]

        battery_score, data_score, performance_score = synthesis.derive_scores(snapshot)
        logger.info(
            f"Offline analysis for {category.name}: "
            f"{len(insights)} insights, {len(actionables)} actionables"
        )

        return AnalysisResult(
            category=category,
            insights=insights,
            actionables=actionables,
            battery_score=battery_score,
            data_score=data_score,
            performance_score=performance_score,
            estimated_savings=EstimatedSavings(
                battery_minutes=sum(a.estimated_battery_savings_minutes or 0.0 for a in actionables),
                data_mb=sum(a.estimated_data_savings_mb or 0.0 for a in actionables),
            ),
            source=ResultSource.OFFLINE,
            message=f"Offline analysis of {category.display_name} query",
        )

    @staticmethod
    def _summary(category: QueryCategory, actionables: List[Actionable]) -> List[Insight]:
        if not actionables:
            return []
        return [category_insight(category, "\n".join(a.description for a in actionables))]
