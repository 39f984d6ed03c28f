"""
PowerGuard - Natural-language battery and data queries for mobile devices.

Usage:
    from powerguard.ai.providers import get_provider
    from powerguard.ai.pipeline import QueryOrchestrator
    from powerguard.telemetry import StaticTelemetrySource

    orchestrator = QueryOrchestrator(
        provider=get_provider(),
        telemetry=StaticTelemetrySource(snapshot),
    )
    result = await orchestrator.process("Top 3 data apps today")
"""

__version__ = "0.1.0"
