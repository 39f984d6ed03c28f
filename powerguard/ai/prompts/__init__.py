"""
Prompts Module - Immutable prompt templates for the classifier and synthesizer.
"""

from powerguard.ai.prompts.classifier_prompts import CLASSIFIER_SYSTEM_PROMPT, CLASSIFIER_PROMPT
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

__all__ = [
    "CLASSIFIER_SYSTEM_PROMPT",
    "CLASSIFIER_PROMPT",
    "BASE_PROMPT",
    "INFORMATION_INSTRUCTIONS",
    "PREDICTION_INSTRUCTIONS",
    "OPTIMIZATION_INSTRUCTIONS",
    "MONITORING_INSTRUCTIONS",
    "INSIGHTS_ONLY_CONTRACT",
    "ACTIONABLE_CONTRACT",
    "format_device_data",
]
