"""
Response Normalizer - Untrusted model payload in, typed AnalysisResult out.

The recommendation payload is treated as a tagged variant:
- a JSON object somewhere in the text  → insights + allow-listed actionables
- anything else                        → one insight carrying the raw text
- nothing at all                       → one degraded insight

Hard Rules:
===========
1. INFORMATION results never carry actionables, whatever the model sent
2. Every actionable type resolves through the allow-list or is dropped
3. Every actionable gets a fresh id, even if the model supplied one
4. OPTIMIZATION / MONITORING answers without a usable actionable get the
   deterministic ones from synthesis.py
5. An INFORMATION query that mentions "data" has all insights re-tagged DATA

Apart from logging, normalize() has no side effects.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from powerguard.telemetry.schemas import DeviceSnapshot
from powerguard.core.exceptions import InvalidCategoryError, PayloadParseError
from powerguard.ai.actions.registry import (
    ActionableDefinition,
    ActionableRegistry,
    ActionableType,
    actionable_registry,
)
from powerguard.ai.intent import keywords
from powerguard.ai.intent.schemas import ExtractedParameters, QueryCategory, parse_data_size_mb
from powerguard.ai.response import synthesis
from powerguard.ai.response.payload import extract_json_object
from powerguard.ai.schemas.analysis import (
    Actionable,
    AnalysisResult,
    EstimatedSavings,
    Insight,
    InsightType,
    ResultSource,
    Severity,
)

logger = logging.getLogger("powerguard.ai.response")


DEGRADED_MESSAGE = "Could not retrieve the requested information."

CATEGORY_INSIGHT_TYPES = {
    QueryCategory.INFORMATION: InsightType.INFORMATION,
    QueryCategory.PREDICTIVE: InsightType.PREDICTION,
    QueryCategory.OPTIMIZATION: InsightType.OPTIMIZATION,
    QueryCategory.MONITORING: InsightType.MONITORING,
}

CATEGORY_TITLES = {
    QueryCategory.INFORMATION: "Usage Information",
    QueryCategory.PREDICTIVE: "Resource Prediction",
    QueryCategory.OPTIMIZATION: "Optimization Recommendations",
    QueryCategory.MONITORING: "Monitoring Setup",
}

_SCORE_KEYS = {
    "battery": ("batteryScore", "battery_score"),
    "data": ("dataScore", "data_score"),
    "performance": ("performanceScore", "performance_score"),
}


@dataclass
class NormalizationReport:
    """What normalize_with_report() kept and why elements were dropped."""
    result: AnalysisResult
    dropped: List[str] = field(default_factory=list)
    parsed_json: bool = False
    synthesized: bool = False


def category_insight(category: QueryCategory, description: str) -> Insight:
    """The single insight used when the payload has no usable insights."""
    return Insight(
        type=CATEGORY_INSIGHT_TYPES[category],
        title=CATEGORY_TITLES[category],
        description=description,
        severity=Severity.MEDIUM,
    )


def _check_category(category: Any) -> QueryCategory:
    try:
        category = QueryCategory(category)
    except ValueError:
        raise InvalidCategoryError(category) from None
    if category not in CATEGORY_TITLES:
        raise InvalidCategoryError(category)
    return category


def _as_float(value: Any) -> Optional[float]:
    """Model numbers as float; NaN and infinities count as absent."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    return int(number) if number is not None else None


_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


def _as_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        return default
    return bool(value)


class ResponseNormalizer:
    """
    Converts recommendation payloads into AnalysisResult objects.

    Usage:
        normalizer = ResponseNormalizer()
        result = normalizer.normalize(
            QueryCategory.MONITORING,
            raw_payload,
            snapshot,
            "Alert me if TikTok uses more than 500MB",
        )
    """

    def __init__(self, registry: ActionableRegistry = actionable_registry):
        self.registry = registry

    def normalize(
        self,
        category: QueryCategory,
        raw_payload: Optional[str],
        snapshot: DeviceSnapshot,
        original_query: str,
        params: Optional[ExtractedParameters] = None,
    ) -> AnalysisResult:
        """
        Normalize one payload.

        Raises:
            InvalidCategoryError: category is INVALID or out of range
        """
        return self.normalize_with_report(category, raw_payload, snapshot, original_query, params).result

    def normalize_with_report(
        self,
        category: QueryCategory,
        raw_payload: Optional[str],
        snapshot: DeviceSnapshot,
        original_query: str,
        params: Optional[ExtractedParameters] = None,
    ) -> NormalizationReport:
        category = _check_category(category)
        dropped: List[str] = []
        data: Dict[str, Any] = {}
        insights: List[Insight] = []
        parsed_json = False

        text = (raw_payload or "").strip()
        if not text:
            logger.warning("Empty recommendation payload")
            insights.append(category_insight(category, DEGRADED_MESSAGE))
        else:
            try:
                data = extract_json_object(text)
                parsed_json = True
            except PayloadParseError as e:
                logger.info(f"Payload is not JSON, wrapping as a single insight: {e}")
                insights.append(category_insight(category, text))

        if parsed_json:
            insights = self._parse_insights(data, category, dropped)

        actionables: List[Actionable] = []
        if category == QueryCategory.INFORMATION:
            if data.get("actionable") or data.get("actionables"):
                logger.info("Information query - ignoring actionables in model payload")
        elif parsed_json:
            actionables = self._parse_actionables(data, snapshot, dropped)

        synthesized = False
        if not actionables and category == QueryCategory.MONITORING:
            actionables = synthesis.synthesize_monitoring_actionables(original_query, snapshot, params)
            synthesized = True
        elif not actionables and category == QueryCategory.OPTIMIZATION:
            actionables, extra_insights = synthesis.synthesize_optimization(original_query, snapshot, params)
            insights.extend(extra_insights)
            synthesized = True

        if not insights:
            description = "\n".join(a.description for a in actionables) or DEGRADED_MESSAGE
            insights.append(category_insight(category, description))

        if category == QueryCategory.INFORMATION and keywords.contains_phrase(original_query, "data"):
            insights = [i.model_copy(update={"type": InsightType.DATA}) for i in insights]

        battery_score, data_score, performance_score = self._scores(data, snapshot)

        result = AnalysisResult(
            category=category,
            insights=insights,
            actionables=actionables,
            battery_score=battery_score,
            data_score=data_score,
            performance_score=performance_score,
            estimated_savings=self._savings(data, actionables),
            source=ResultSource.MODEL,
            message=f"Analysis of {category.display_name} query",
        )

        if dropped:
            logger.warning(f"Dropped {len(dropped)} payload elements: {dropped}")

        return NormalizationReport(
            result=result,
            dropped=dropped,
            parsed_json=parsed_json,
            synthesized=synthesized,
        )

    # ---------------------------------------------------------------------------
    # INSIGHTS
    # ---------------------------------------------------------------------------

    def _parse_insights(self, data: Dict[str, Any], category: QueryCategory, dropped: List[str]) -> List[Insight]:
        raw_insights = data.get("insights")
        if raw_insights is None and data.get("insight") is not None:
            raw_insights = [data["insight"]]
        if isinstance(raw_insights, (str, dict)):
            raw_insights = [raw_insights]
        if not isinstance(raw_insights, list):
            return []

        insights = []
        for item in raw_insights:
            if isinstance(item, str):
                if item.strip():
                    insights.append(category_insight(category, item.strip()))
                continue
            if not isinstance(item, dict):
                dropped.append(f"insight: not an object ({type(item).__name__})")
                continue

            description = item.get("description")
            if not isinstance(description, str) or not description.strip():
                dropped.append("insight: missing description")
                continue

            try:
                insights.append(Insight(
                    type=item.get("type") or CATEGORY_INSIGHT_TYPES[category],
                    title=str(item.get("title") or CATEGORY_TITLES[category]),
                    description=description.strip(),
                    severity=item.get("severity"),
                ))
            except ValidationError as e:
                dropped.append(f"insight: {e.error_count()} validation errors")
        return insights

    # ---------------------------------------------------------------------------
    # ACTIONABLES
    # ---------------------------------------------------------------------------

    def _parse_actionables(
        self,
        data: Dict[str, Any],
        snapshot: DeviceSnapshot,
        dropped: List[str],
    ) -> List[Actionable]:
        raw_actionables = data.get("actionable")
        if raw_actionables is None:
            raw_actionables = data.get("actionables")
        if isinstance(raw_actionables, dict):
            raw_actionables = [raw_actionables]
        if not isinstance(raw_actionables, list):
            return []

        actionables = []
        for item in raw_actionables:
            if not isinstance(item, dict):
                dropped.append(f"actionable: not an object ({type(item).__name__})")
                continue

            raw_type = item.get("type")
            definition = self.registry.resolve(raw_type)
            if definition is None:
                logger.warning(f"Skipping actionable type outside the allow-list: {raw_type!r}")
                dropped.append(f"actionable: type not allowed ({raw_type!r})")
                continue

            actionable, error = self._build_actionable(item, definition, snapshot)
            if actionable is None:
                logger.warning(f"Skipping invalid {definition.type.value} actionable: {error}")
                dropped.append(f"actionable: {error}")
                continue
            actionables.append(actionable)
        return actionables

    def _build_actionable(
        self,
        item: Dict[str, Any],
        definition: ActionableDefinition,
        snapshot: DeviceSnapshot,
    ) -> Tuple[Optional[Actionable], Optional[str]]:
        is_alert = definition.type == ActionableType.SET_ALERT
        fields = dict(item)
        fields["package_name"] = self._resolve_package(
            item.get("package_name") or item.get("packageName") or item.get("app"),
            snapshot,
            is_alert,
        )

        try:
            threshold = self._read_threshold(item)
            threshold_mb = self._read_threshold_mb(item)
        except ValueError as e:
            return None, str(e)
        fields["threshold"] = threshold
        fields["threshold_mb"] = threshold_mb

        is_valid, error = definition.validate(fields)
        if not is_valid:
            return None, error

        new_mode = item.get("new_mode") or item.get("newMode")
        parameters: Dict[str, Any] = {}
        if is_alert:
            parameters["resource"] = self._alert_resource(item.get("type"), threshold, threshold_mb)
        if threshold is not None:
            parameters["threshold"] = threshold
        if threshold_mb is not None:
            parameters["threshold_mb"] = threshold_mb
        if new_mode:
            parameters["new_mode"] = new_mode
        extra = item.get("parameters")
        if isinstance(extra, dict):
            for key, value in extra.items():
                parameters.setdefault(str(key), value)

        description = str(item.get("description") or definition.description)
        try:
            actionable = Actionable(
                type=definition.type,
                package_name=fields["package_name"],
                description=description,
                reason=str(item.get("reason") or description),
                new_mode=str(new_mode) if new_mode else None,
                estimated_battery_savings_minutes=_as_float(
                    item.get("estimated_battery_savings", item.get("estimated_battery_savings_minutes"))
                ),
                estimated_data_savings_mb=_as_float(
                    item.get("estimated_data_savings", item.get("estimated_data_savings_mb"))
                ),
                severity=_as_int(item.get("severity")),
                enabled=_as_bool(item.get("enabled")),
                throttle_level=_as_int(item.get("throttle_level")),
                parameters=parameters,
            )
        except ValidationError as e:
            return None, f"{e.error_count()} validation errors"
        return actionable, None

    def _resolve_package(self, value: Any, snapshot: DeviceSnapshot, is_alert: bool) -> Optional[str]:
        """
        Map what the model sent to a package id.

        Display names are looked up in the snapshot, then among well-known
        apps. Alerts not tied to a known app use the "system" sentinel.
        """
        name = str(value).strip() if value is not None else ""
        if not name:
            return synthesis.SYSTEM_PACKAGE if is_alert else None
        if name.lower() == synthesis.SYSTEM_PACKAGE:
            return synthesis.SYSTEM_PACKAGE

        app = snapshot.find_app(name)
        if app is not None:
            return app.package_name
        if "." in name:
            return name

        for known_name, package in keywords.KNOWN_APP_PACKAGES.items():
            if known_name.lower() == name.lower():
                return package
        return synthesis.SYSTEM_PACKAGE if is_alert else name

    @staticmethod
    def _read_threshold(item: Dict[str, Any]) -> Optional[int]:
        value = item.get("threshold")
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip().rstrip("%").strip()
        number = _as_float(value)
        if number is None or not 0 <= number <= 100:
            raise ValueError(f"bad battery threshold {item.get('threshold')!r}")
        return int(number)

    @staticmethod
    def _read_threshold_mb(item: Dict[str, Any]) -> Optional[int]:
        value = item.get("threshold_mb")
        if value is None:
            return None
        number = parse_data_size_mb(value)
        if number is None or number < 0:
            raise ValueError(f"bad data threshold {value!r}")
        return number

    @staticmethod
    def _alert_resource(raw_type: Any, threshold: Optional[int], threshold_mb: Optional[int]) -> str:
        name = str(raw_type or "").lower()
        if "data" in name or (threshold_mb is not None and threshold is None):
            return "data"
        return "battery"

    # ---------------------------------------------------------------------------
    # SCORES AND SAVINGS
    # ---------------------------------------------------------------------------

    @staticmethod
    def _scores(data: Dict[str, Any], snapshot: DeviceSnapshot) -> Tuple[float, float, float]:
        derived = dict(zip(("battery", "data", "performance"), synthesis.derive_scores(snapshot)))
        scores = []
        for name, keys in _SCORE_KEYS.items():
            value = None
            for key in keys:
                value = _as_float(data.get(key))
                if value is not None:
                    break
            if value is None:
                value = derived[name]
            scores.append(min(max(value, 0.0), 100.0))
        return scores[0], scores[1], scores[2]

    @staticmethod
    def _savings(data: Dict[str, Any], actionables: List[Actionable]) -> EstimatedSavings:
        raw = data.get("estimatedSavings", data.get("estimated_savings"))
        if isinstance(raw, dict):
            battery = _as_float(raw.get("batteryMinutes", raw.get("battery_minutes")))
            data_mb = _as_float(raw.get("dataMB", raw.get("data_mb")))
            if battery is not None or data_mb is not None:
                return EstimatedSavings(
                    battery_minutes=max(battery or 0.0, 0.0),
                    data_mb=max(data_mb or 0.0, 0.0),
                )

        return EstimatedSavings(
            battery_minutes=sum(a.estimated_battery_savings_minutes or 0.0 for a in actionables),
            data_mb=sum(a.estimated_data_savings_mb or 0.0 for a in actionables),
        )
