"""
Recommendation Module - Category-specific model prompting.
"""

from powerguard.ai.recommendation.synthesizer import RecommendationSynthesizer

__all__ = ["RecommendationSynthesizer"]
