"""
Query Orchestrator - Runs one query through the whole pipeline.

Flow:
=====
    IDLE → CLASSIFYING → SYNTHESIZING → NORMALIZING → DONE
                              │
                              └─(backend error / timeout)→ OFFLINE_FALLBACK → DONE

    any unexpected internal error → FAILED (a degraded result is still returned)

Budgets:
========
- Classification is bounded by CLASSIFICATION_TIMEOUT_SECONDS. On timeout
  the keyword rules classify the query instead.
- Synthesis is bounded by SYNTHESIS_TIMEOUT_SECONDS. On timeout the
  in-flight model call is cancelled and the offline analyzer answers.
  Nothing is retried.

process() never raises. Every run reports its state trail, timings and
dropped payload elements to the PipelineMonitor.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from powerguard.core.config import settings
from powerguard.core.exceptions import ModelClientError
from powerguard.telemetry.schemas import DeviceSnapshot
from powerguard.telemetry.source import TelemetrySource
from powerguard.ai.providers.base import AIProvider
from powerguard.ai.intent.classifier import IntentClassifier
from powerguard.ai.intent.schemas import QueryAnalysis, QueryCategory
from powerguard.ai.recommendation.synthesizer import RecommendationSynthesizer
from powerguard.ai.response.normalizer import ResponseNormalizer, DEGRADED_MESSAGE
from powerguard.ai.schemas.analysis import (
    AnalysisResult,
    Insight,
    InsightType,
    ResultSource,
    Severity,
)
from powerguard.ai.monitoring.monitor import PipelineMonitor
from powerguard.ai.pipeline.offline import OfflineAnalyzer

logger = logging.getLogger("powerguard.ai.pipeline")


INVALID_QUERY_MESSAGE = (
    "I couldn't tell what you want to know about your battery or data. "
    "Try asking something like \"Which apps use the most battery?\""
)


class PipelineState(str, Enum):
    IDLE = "IDLE"
    CLASSIFYING = "CLASSIFYING"
    SYNTHESIZING = "SYNTHESIZING"
    NORMALIZING = "NORMALIZING"
    OFFLINE_FALLBACK = "OFFLINE_FALLBACK"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class PipelineRun:
    """Everything one process() call produced, for callers that want more than the result."""
    run_id: str
    query: str
    result: Optional[AnalysisResult] = None
    analysis: Optional[QueryAnalysis] = None
    states: List[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    dropped: List[str] = field(default_factory=list)
    latency_ms: float = 0.0

    @property
    def final_state(self) -> PipelineState:
        return self.states[-1]

    def enter(self, state: PipelineState) -> None:
        self.states.append(state)


def invalid_query_result() -> AnalysisResult:
    """Answer for queries no category fits. No model is consulted."""
    return AnalysisResult(
        category=QueryCategory.INVALID,
        insights=[Insight(
            type=InsightType.INFORMATION,
            title="Query Not Understood",
            description=INVALID_QUERY_MESSAGE,
            severity=Severity.LOW,
        )],
        source=ResultSource.OFFLINE,
        message="Query could not be classified",
    )


def degraded_result(category: QueryCategory = QueryCategory.INFORMATION) -> AnalysisResult:
    """Answer returned when the pipeline itself failed."""
    return AnalysisResult(
        category=category,
        insights=[Insight(
            type=InsightType.INFORMATION,
            title="Analysis Unavailable",
            description=DEGRADED_MESSAGE,
            severity=Severity.MEDIUM,
        )],
        source=ResultSource.OFFLINE,
        message=DEGRADED_MESSAGE,
    )


class QueryOrchestrator:
    """
    Wires classifier, telemetry, synthesizer and normalizer together.

    Collaborators are injected; anything not given is built around the
    provider.

    Usage:
        orchestrator = QueryOrchestrator(
            provider=get_provider("gemini"),
            telemetry=StaticTelemetrySource(snapshot),
        )
        result = await orchestrator.process("Save battery but keep WhatsApp running")
    """

    def __init__(
        self,
        provider: AIProvider,
        telemetry: TelemetrySource,
        monitor: Optional[PipelineMonitor] = None,
        classifier: Optional[IntentClassifier] = None,
        synthesizer: Optional[RecommendationSynthesizer] = None,
        normalizer: Optional[ResponseNormalizer] = None,
        offline: Optional[OfflineAnalyzer] = None,
    ):
        self.provider = provider
        self.telemetry = telemetry
        self.monitor = monitor or PipelineMonitor()
        self.classifier = classifier or IntentClassifier(provider)
        self.synthesizer = synthesizer or RecommendationSynthesizer(provider)
        self.normalizer = normalizer or ResponseNormalizer()
        self.offline = offline or OfflineAnalyzer()

    async def process(self, query: str) -> AnalysisResult:
        """Answer one query. Never raises."""
        run = await self.run(query)
        return run.result

    async def run(self, query: str) -> PipelineRun:
        """Answer one query and return the full run record. Never raises."""
        query = query or ""
        start_time = time.time()
        run = PipelineRun(run_id=self.monitor.track_request(query), query=query)

        try:
            run.result = await self._execute(run)
        except Exception as e:
            logger.error(f"Pipeline run {run.run_id} failed: {e}", exc_info=True)
            run.enter(PipelineState.FAILED)
            category = run.analysis.category if run.analysis is not None else QueryCategory.INFORMATION
            run.result = degraded_result(category)

        run.latency_ms = (time.time() - start_time) * 1000
        self.monitor.track_complete(
            run.run_id,
            category=run.result.category.name,
            source=run.result.source.value,
            states=[s.value for s in run.states],
            latency_ms=run.latency_ms,
            actionables=len(run.result.actionables),
            dropped=len(run.dropped),
        )
        return run

    # ---------------------------------------------------------------------------
    # STAGES
    # ---------------------------------------------------------------------------

    async def _execute(self, run: PipelineRun) -> AnalysisResult:
        run.enter(PipelineState.CLASSIFYING)
        run.analysis = await self._classify(run.query)
        analysis = run.analysis

        if analysis.category == QueryCategory.INVALID:
            run.enter(PipelineState.DONE)
            return invalid_query_result()

        snapshot = await self._read_snapshot()

        run.enter(PipelineState.SYNTHESIZING)
        payload = await self._synthesize(run, analysis, snapshot)
        if payload is None:
            run.enter(PipelineState.OFFLINE_FALLBACK)
            result = self.offline.analyze(analysis, snapshot, run.query)
            run.enter(PipelineState.DONE)
            return result

        run.enter(PipelineState.NORMALIZING)
        report = self.normalizer.normalize_with_report(
            analysis.category,
            payload,
            snapshot,
            run.query,
            analysis.params,
        )
        run.dropped = report.dropped
        run.enter(PipelineState.DONE)
        return report.result

    async def _classify(self, query: str) -> QueryAnalysis:
        try:
            return await asyncio.wait_for(
                self.classifier.classify(query),
                timeout=settings.CLASSIFICATION_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Classification exceeded {settings.CLASSIFICATION_TIMEOUT_SECONDS}s, using keyword rules"
            )
        except Exception as e:
            logger.error(f"Classifier raised unexpectedly, using keyword rules: {e}")
        return self.classifier.fallback(query)

    async def _read_snapshot(self) -> DeviceSnapshot:
        try:
            return await self.telemetry.get_snapshot()
        except Exception as e:
            logger.warning(f"Telemetry unavailable, continuing with an empty snapshot: {e}")
            return DeviceSnapshot.empty()

    async def _synthesize(
        self,
        run: PipelineRun,
        analysis: QueryAnalysis,
        snapshot: DeviceSnapshot,
    ) -> Optional[str]:
        """The raw recommendation payload, or None when the offline path should answer."""
        provider_name = self.provider.provider_type.value
        start_time = time.time()
        try:
            payload = await asyncio.wait_for(
                self.synthesizer.synthesize(analysis, snapshot),
                timeout=settings.SYNTHESIS_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            reason = f"synthesis exceeded {settings.SYNTHESIS_TIMEOUT_SECONDS}s"
        except ModelClientError as e:
            reason = f"model unavailable: {e}"
        else:
            self.monitor.track_model_response(
                run.run_id,
                provider=provider_name,
                success=True,
                latency_ms=(time.time() - start_time) * 1000,
                payload_length=len(payload or ""),
            )
            return payload

        self.monitor.track_model_response(
            run.run_id,
            provider=provider_name,
            success=False,
            latency_ms=(time.time() - start_time) * 1000,
            error=reason,
        )
        self.monitor.track_offline_fallback(run.run_id, reason)
        return None
