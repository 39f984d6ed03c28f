"""
Pipeline Module - One query, end to end.

- orchestrator.py: state machine, budgets, fallback policy
- offline.py: answers from the device snapshot when no model is available
"""

from powerguard.ai.pipeline.offline import OfflineAnalyzer
from powerguard.ai.pipeline.orchestrator import (
    QueryOrchestrator,
    PipelineRun,
    PipelineState,
    degraded_result,
    invalid_query_result,
)

__all__ = [
    "OfflineAnalyzer",
    "QueryOrchestrator",
    "PipelineRun",
    "PipelineState",
    "degraded_result",
    "invalid_query_result",
]
