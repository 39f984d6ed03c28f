"""
Response Module - From untrusted model payload to typed AnalysisResult.

- payload.py: locate the JSON object in a reply
- normalizer.py: validate, filter through the allow-list, fill gaps
- synthesis.py: the deterministic rules shared with the offline path
"""

from powerguard.ai.response.payload import extract_json_object
from powerguard.ai.response.normalizer import (
    ResponseNormalizer,
    NormalizationReport,
    DEGRADED_MESSAGE,
    category_insight,
)

__all__ = [
    "extract_json_object",
    "ResponseNormalizer",
    "NormalizationReport",
    "DEGRADED_MESSAGE",
    "category_insight",
]
