"""
Intent Module - Query classification.

Turns free text into a QueryAnalysis:
    "Notify me when TikTok uses 2GB" → MONITORING, thresholds.data=2000
"""

from powerguard.ai.intent.schemas import (
    QueryCategory,
    ResourceType,
    DurationUnit,
    PeriodUnit,
    ConditionType,
    ClassificationSource,
    Duration,
    TimePeriod,
    Thresholds,
    ExtractedParameters,
    QueryAnalysis,
    parse_data_size_mb,
)

__all__ = [
    "QueryCategory",
    "ResourceType",
    "DurationUnit",
    "PeriodUnit",
    "ConditionType",
    "ClassificationSource",
    "Duration",
    "TimePeriod",
    "Thresholds",
    "ExtractedParameters",
    "QueryAnalysis",
    "parse_data_size_mb",
]
