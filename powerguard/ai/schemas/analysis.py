"""
Analysis Schemas - The typed output of one pipeline run.

Model output reaches these models only after the normalizer has located a
JSON object in it and filtered actionables through the allow-list. The
coercing validators below absorb the label drift models show in practice
("BATTERY", "Information", "info", "critical").

Structure:
==========
AnalysisResult
  ├── insights: List[Insight]          read-only facts
  ├── actionables: List[Actionable]    typed, allow-listed commands
  ├── battery/data/performance scores  0..100
  └── estimated_savings                EstimatedSavings
"""

import math
from enum import Enum
from typing import Optional, Dict, List, Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from powerguard.ai.actions.registry import ActionableType, actionable_registry
from powerguard.ai.intent.schemas import QueryCategory


# ---------------------------------------------------------------------------
# INSIGHTS
# ---------------------------------------------------------------------------

class InsightType(str, Enum):
    BATTERY = "battery"
    DATA = "data"
    INFORMATION = "information"
    PREDICTION = "prediction"
    OPTIMIZATION = "optimization"
    MONITORING = "monitoring"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_INSIGHT_TYPE_ALIASES = {
    "info": InsightType.INFORMATION,
    "informational": InsightType.INFORMATION,
    "predictive": InsightType.PREDICTION,
    "forecast": InsightType.PREDICTION,
    "optimize": InsightType.OPTIMIZATION,
    "recommendation": InsightType.OPTIMIZATION,
    "monitor": InsightType.MONITORING,
    "alert": InsightType.MONITORING,
    "network": InsightType.DATA,
    "power": InsightType.BATTERY,
}

_SEVERITY_ALIASES = {
    "info": Severity.LOW,
    "minor": Severity.LOW,
    "moderate": Severity.MEDIUM,
    "normal": Severity.MEDIUM,
    "warning": Severity.MEDIUM,
    "critical": Severity.HIGH,
    "severe": Severity.HIGH,
    "major": Severity.HIGH,
}


class Insight(BaseModel):
    """
    A read-only fact or explanation about device resource usage.

    Unknown types become INFORMATION, unknown severities become MEDIUM.
    """
    model_config = ConfigDict(frozen=True)

    type: InsightType = InsightType.INFORMATION
    title: str
    description: str
    severity: Severity = Severity.MEDIUM

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> InsightType:
        if isinstance(v, InsightType):
            return v
        key = str(v or "").strip().lower()
        try:
            return InsightType(key)
        except ValueError:
            return _INSIGHT_TYPE_ALIASES.get(key, InsightType.INFORMATION)

    @field_validator("severity", mode="before")
    @classmethod
    def coerce_severity(cls, v: Any) -> Severity:
        if isinstance(v, Severity):
            return v
        key = str(v or "").strip().lower()
        try:
            return Severity(key)
        except ValueError:
            return _SEVERITY_ALIASES.get(key, Severity.MEDIUM)


# ---------------------------------------------------------------------------
# ACTIONABLES
# ---------------------------------------------------------------------------

class Actionable(BaseModel):
    """
    A validated, typed device intervention.

    id is generated at creation and is the join key of the effector's
    result map; it is never reused. Parameters are string-valued so every
    effector reads them the same way.

    Example:
        Actionable(
            type=ActionableType.SET_ALERT,
            package_name="com.zhiliaoapp.musically",
            description="Alert when TikTok data usage reaches 500 MB",
            reason="User requested data usage monitoring",
            parameters={"resource": "data", "threshold_mb": "500"},
        )
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    type: ActionableType
    package_name: str = Field(min_length=1)
    description: str
    reason: str = ""
    new_mode: Optional[str] = None
    estimated_battery_savings_minutes: Optional[float] = Field(default=None, ge=0)
    estimated_data_savings_mb: Optional[float] = Field(default=None, ge=0)
    severity: int = Field(default=3, ge=1, le=5)
    enabled: bool = True
    throttle_level: Optional[int] = None
    parameters: Dict[str, str] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def resolve_type(cls, v: Any) -> Any:
        definition = actionable_registry.resolve(v)
        if definition is None:
            raise ValueError(f"Actionable type not allow-listed: {v!r}")
        return definition.type

    @field_validator("severity", mode="before")
    @classmethod
    def clamp_severity(cls, v: Any) -> Any:
        if v is None:
            return 3
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            if not math.isfinite(v):
                raise ValueError(f"Severity must be a finite number: {v!r}")
            return min(max(int(v), 1), 5)
        return v

    @field_validator("parameters", mode="before")
    @classmethod
    def stringify_parameters(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k): str(val) for k, val in v.items() if val is not None}
        return v

    def same_effect_as(self, other: "Actionable") -> bool:
        """True when both would apply the same change, ids aside."""
        return (
            self.type == other.type
            and self.package_name == other.package_name
            and self.parameters == other.parameters
        )


# ---------------------------------------------------------------------------
# RESULT
# ---------------------------------------------------------------------------

class ResultSource(str, Enum):
    MODEL = "model"
    OFFLINE = "offline"


class EstimatedSavings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    battery_minutes: float = Field(default=0.0, ge=0, alias="batteryMinutes")
    data_mb: float = Field(default=0.0, ge=0, alias="dataMB")


class AnalysisResult(BaseModel):
    """
    Terminal output of one pipeline run.

    Guaranteed: INFORMATION results carry no actionables, and every
    actionable type is allow-listed (enforced by Actionable itself).
    """
    model_config = ConfigDict(frozen=True)

    category: QueryCategory
    insights: List[Insight] = Field(default_factory=list)
    actionables: List[Actionable] = Field(default_factory=list)
    battery_score: float = Field(default=0.0, ge=0, le=100)
    data_score: float = Field(default=0.0, ge=0, le=100)
    performance_score: float = Field(default=0.0, ge=0, le=100)
    estimated_savings: EstimatedSavings = Field(default_factory=EstimatedSavings)
    source: ResultSource = ResultSource.MODEL
    message: str = ""

    @model_validator(mode="after")
    def information_has_no_actionables(self) -> "AnalysisResult":
        if self.category == QueryCategory.INFORMATION and self.actionables:
            raise ValueError("Information results must not carry actionables")
        return self

    @property
    def has_actionables(self) -> bool:
        return bool(self.actionables)
