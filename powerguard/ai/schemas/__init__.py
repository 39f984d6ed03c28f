"""
AI Schemas Module - Typed pipeline output.
"""

from powerguard.ai.schemas.analysis import (
    InsightType,
    Severity,
    Insight,
    Actionable,
    EstimatedSavings,
    AnalysisResult,
    ResultSource,
)

__all__ = [
    "InsightType",
    "Severity",
    "Insight",
    "Actionable",
    "EstimatedSavings",
    "AnalysisResult",
    "ResultSource",
]
