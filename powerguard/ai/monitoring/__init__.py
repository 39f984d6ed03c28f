"""
Monitoring Module - Structured pipeline logs and run metrics.
"""

from powerguard.ai.monitoring.monitor import (
    PipelineMonitor,
    AggregatedMetrics,
    RunMetrics,
    configure_logging,
)

__all__ = [
    "PipelineMonitor",
    "AggregatedMetrics",
    "RunMetrics",
    "configure_logging",
]
