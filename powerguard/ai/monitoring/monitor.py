"""
Pipeline Monitor - Structured logging and metrics for query runs.

One PipelineMonitor per orchestrator. It writes JSON events to the
"powerguard.pipeline" logger and keeps in-memory aggregates:
- pipeline_request:  a query entered the pipeline
- model_response:    the recommendation model answered (or failed)
- offline_fallback:  the query was answered from the snapshot alone
- pipeline_complete: final category, source, state trail, latency

Usage:
    monitor = PipelineMonitor()
    run_id = monitor.track_request("Top 3 data apps today")
    ...
    monitor.track_complete(run_id, result, states, latency_ms=312.0)

    stats = monitor.get_stats()
"""

import json
import logging
import sys
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional

from powerguard.core.config import settings


# ---------------------------------------------------------------------------
# LOGGING SETUP
# ---------------------------------------------------------------------------
LOG_FORMAT = '[%(asctime)s] %(levelname)s [%(name)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

PREVIEW_LENGTH = 50


def configure_logging(level: str = settings.LOG_LEVEL) -> logging.Logger:
    """
    Attach a stdout handler to the "powerguard" logger hierarchy.

    Safe to call more than once: the handler is only added the first time,
    later calls just change the level.
    """
    root = logging.getLogger("powerguard")
    root.setLevel(level.upper())

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root.addHandler(handler)

    return root


configure_logging()
logger = logging.getLogger("powerguard.pipeline")


def _preview(text: str) -> str:
    return text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# METRICS DATA CLASSES
# ---------------------------------------------------------------------------
@dataclass
class RunMetrics:
    """Metrics for a single pipeline run."""
    run_id: str
    category: str
    source: str
    final_state: str
    latency_ms: float
    actionables: int
    dropped: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class AggregatedMetrics:
    """Aggregated metrics since the last reset."""
    total_runs: int = 0
    offline_fallbacks: int = 0
    failed_runs: int = 0
    model_calls: int = 0
    failed_model_calls: int = 0
    total_latency_ms: float = 0.0
    total_actionables: int = 0
    dropped_actionables: int = 0
    runs_by_category: Dict[str, int] = field(default_factory=dict)

    @property
    def avg_latency_ms(self) -> float:
        if self.total_runs == 0:
            return 0.0
        return self.total_latency_ms / self.total_runs

    @property
    def fallback_rate(self) -> float:
        if self.total_runs == 0:
            return 0.0
        return (self.offline_fallbacks / self.total_runs) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_runs": self.total_runs,
            "offline_fallbacks": self.offline_fallbacks,
            "fallback_rate": f"{self.fallback_rate:.1f}%",
            "failed_runs": self.failed_runs,
            "model_calls": self.model_calls,
            "failed_model_calls": self.failed_model_calls,
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "total_actionables": self.total_actionables,
            "dropped_actionables": self.dropped_actionables,
            "runs_by_category": dict(self.runs_by_category),
        }


# ---------------------------------------------------------------------------
# MONITOR
# ---------------------------------------------------------------------------
class PipelineMonitor:
    """
    Logs pipeline events and aggregates run metrics.

    Thread-safe: counters are guarded by a lock so a monitor can be shared
    by orchestrators running on different event loops.
    """

    def __init__(self, max_history: int = 100):
        self._lock = Lock()
        self._max_history = max_history
        self._metrics = AggregatedMetrics()
        self._history: List[RunMetrics] = []

    # ---------------------------------------------------------------------------
    # EVENTS
    # ---------------------------------------------------------------------------

    def track_request(self, query: str, run_id: Optional[str] = None) -> str:
        """Log a query entering the pipeline. Returns the run id."""
        run_id = run_id or uuid.uuid4().hex[:12]
        log_data = {
            "event": "pipeline_request",
            "run_id": run_id,
            "query_preview": _preview(query),
            "query_length": len(query),
            "timestamp": _now(),
        }
        logger.info(f"Pipeline Request: {json.dumps(log_data)}")
        return run_id

    def track_model_response(
        self,
        run_id: str,
        provider: str,
        success: bool,
        latency_ms: float = 0.0,
        payload_length: int = 0,
        error: Optional[str] = None,
    ) -> None:
        """Log the outcome of the recommendation call."""
        log_data = {
            "event": "model_response",
            "run_id": run_id,
            "provider": provider,
            "success": success,
            "latency_ms": round(latency_ms, 2),
            "payload_length": payload_length,
            "timestamp": _now(),
        }
        if error:
            log_data["error"] = error

        with self._lock:
            self._metrics.model_calls += 1
            if not success:
                self._metrics.failed_model_calls += 1

        level = logging.INFO if success else logging.WARNING
        logger.log(level, f"Model Response: {json.dumps(log_data)}")

    def track_offline_fallback(self, run_id: str, reason: str) -> None:
        log_data = {
            "event": "offline_fallback",
            "run_id": run_id,
            "reason": reason,
            "timestamp": _now(),
        }
        logger.warning(f"Offline Fallback: {json.dumps(log_data)}")

    def track_complete(
        self,
        run_id: str,
        category: str,
        source: str,
        states: List[str],
        latency_ms: float,
        actionables: int = 0,
        dropped: int = 0,
    ) -> None:
        """Log the end of a run and fold it into the aggregates."""
        final_state = states[-1] if states else "UNKNOWN"
        run = RunMetrics(
            run_id=run_id,
            category=category,
            source=source,
            final_state=final_state,
            latency_ms=latency_ms,
            actionables=actionables,
            dropped=dropped,
        )

        with self._lock:
            m = self._metrics
            m.total_runs += 1
            m.total_latency_ms += latency_ms
            m.total_actionables += actionables
            m.dropped_actionables += dropped
            m.runs_by_category[category] = m.runs_by_category.get(category, 0) + 1
            if "OFFLINE_FALLBACK" in states:
                m.offline_fallbacks += 1
            if final_state == "FAILED":
                m.failed_runs += 1

            self._history.append(run)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history:]

        log_data = {
            "event": "pipeline_complete",
            "run_id": run_id,
            "category": category,
            "source": source,
            "states": states,
            "latency_ms": round(latency_ms, 2),
            "actionables": actionables,
            "dropped": dropped,
            "timestamp": _now(),
        }
        level = logging.ERROR if final_state == "FAILED" else logging.INFO
        logger.log(level, f"Pipeline Complete: {json.dumps(log_data)}")

    # ---------------------------------------------------------------------------
    # STATS
    # ---------------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return self._metrics.to_dict()

    def get_recent_runs(self, limit: int = 10) -> List[Dict[str, Any]]:
        with self._lock:
            recent = self._history[-limit:]
            return [
                {
                    "run_id": r.run_id,
                    "category": r.category,
                    "source": r.source,
                    "final_state": r.final_state,
                    "latency_ms": round(r.latency_ms, 2),
                    "actionables": r.actionables,
                    "dropped": r.dropped,
                    "timestamp": r.timestamp.isoformat(),
                }
                for r in reversed(recent)
            ]

    def reset(self) -> None:
        with self._lock:
            self._metrics = AggregatedMetrics()
            self._history = []
