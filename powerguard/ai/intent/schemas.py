"""
Intent Schemas - Pydantic models for classified user queries.

A query is classified exactly once into a QueryAnalysis: a closed
QueryCategory plus the ExtractedParameters the classifier could find.

Design Philosophy:
=================
- Immutable models (frozen), built once per query
- Validation at construction time, so model-supplied values such as
  "2GB" or "Hours" are normalized before anything downstream sees them
- Absent fields mean "not specified", never zero
- Accepts the snake_case wire names the classifier prompt asks for
"""

import math
import re
from enum import Enum, IntEnum
from typing import Optional, List, Any

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, ValidationInfo, field_validator


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------

class QueryCategory(IntEnum):
    """
    Closed taxonomy of user queries.

    INVALID: Empty or unclassifiable input, never sent to the model
    INFORMATION: Usage statistics and rankings ("Top 3 data apps today")
    PREDICTIVE: Sufficiency questions ("Can I watch Netflix for 3 hours?")
    OPTIMIZATION: Requests to save a resource ("Save battery but keep Maps")
    MONITORING: Threshold alerts ("Notify me when TikTok uses 500MB")
    """
    INVALID = 0
    INFORMATION = 1
    PREDICTIVE = 2
    OPTIMIZATION = 3
    MONITORING = 4

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


class ResourceType(str, Enum):
    """The two consumption dimensions the pipeline reasons about."""
    BATTERY = "battery"
    DATA = "data"


class DurationUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class PeriodUnit(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class ConditionType(str, Enum):
    """When a monitoring alert should fire."""
    WHILE_USING = "while_using"
    EXCEEDS_USAGE = "exceeds_usage"
    REACHES_THRESHOLD = "reaches_threshold"


class ClassificationSource(str, Enum):
    """Which path produced a QueryAnalysis (diagnostics only)."""
    MODEL = "model"
    FALLBACK = "fallback"


# ---------------------------------------------------------------------------
# VALUE NORMALIZATION
# ---------------------------------------------------------------------------

_DATA_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(gb|g|mb|m)?\s*$", re.IGNORECASE)
_PERCENT_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*%?\s*$")

MB_PER_GB = 1000


def parse_data_size_mb(value: Any) -> Optional[int]:
    """
    Normalize a data amount to whole megabytes.

    Numbers are taken as MB already. Strings may carry a unit:
    "2GB" -> 2000, "500 MB" -> 500, "1.5gb" -> 1500.

    Raises:
        ValueError: if the value cannot be read as a data amount
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Not a data amount: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Not a data amount: {value!r}")
        return int(value)

    match = _DATA_SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Not a data amount: {value!r}")

    amount = float(match.group(1))
    unit = (match.group(2) or "mb").lower()
    if unit.startswith("g"):
        amount *= MB_PER_GB
    if not math.isfinite(amount):
        raise ValueError(f"Not a data amount: {value!r}")
    return int(amount)


def _as_list(value: Any) -> Any:
    # The model sometimes sends a bare string where a list is expected
    if isinstance(value, str):
        return [value]
    return value


def _dedupe(values: Optional[List[Any]]) -> Optional[List[Any]]:
    """Drop duplicates while keeping first-seen order."""
    if values is None:
        return None
    seen = set()
    result = []
    for item in values:
        key = item.lower() if isinstance(item, str) else item
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


# ---------------------------------------------------------------------------
# PARAMETER MODELS
# ---------------------------------------------------------------------------

class Duration(BaseModel):
    """How long the user needs a resource to last ("next 3 hours")."""
    model_config = ConfigDict(frozen=True)

    value: int = Field(ge=0)
    unit: DurationUnit

    @field_validator("unit", mode="before")
    @classmethod
    def normalize_unit(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if v and not v.endswith("s"):
                v += "s"
        return v

    @property
    def minutes(self) -> int:
        factor = {DurationUnit.MINUTES: 1, DurationUnit.HOURS: 60, DurationUnit.DAYS: 1440}
        return self.value * factor[self.unit]


class TimePeriod(BaseModel):
    """The window a usage question refers to ("this week")."""
    model_config = ConfigDict(frozen=True)

    value: int = Field(ge=0)
    unit: PeriodUnit

    @field_validator("unit", mode="before")
    @classmethod
    def normalize_unit(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if v.endswith("s"):
                v = v[:-1]
        return v


class Thresholds(BaseModel):
    """
    Alert thresholds.

    battery is a percentage (0-100); data is always megabytes.
    """
    model_config = ConfigDict(frozen=True)

    battery: Optional[int] = Field(default=None, ge=0, le=100)
    data: Optional[int] = Field(default=None, ge=0)

    @field_validator("battery", mode="before")
    @classmethod
    def parse_percent(cls, v: Any) -> Any:
        if isinstance(v, str):
            match = _PERCENT_PATTERN.match(v)
            if not match:
                raise ValueError(f"Not a percentage: {v!r}")
            number = float(match.group(1))
            if not math.isfinite(number):
                raise ValueError(f"Not a percentage: {v!r}")
            return int(number)
        return v

    @field_validator("data", mode="before")
    @classmethod
    def parse_data(cls, v: Any) -> Any:
        return parse_data_size_mb(v)


class ExtractedParameters(BaseModel):
    """
    Structured parameters pulled out of a query.

    Every field is optional. List fields behave as ordered sets: duplicates
    are dropped (case-insensitively for strings) keeping first-seen order.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    apps: Optional[List[str]] = None
    app_categories: Optional[List[str]] = None
    duration: Optional[Duration] = None
    time_period: Optional[TimePeriod] = None
    resource_type: Optional[List[ResourceType]] = None
    thresholds: Optional[Thresholds] = None
    limit: Optional[int] = Field(default=None, ge=1)
    context: Optional[str] = None
    priority_apps: Optional[List[str]] = None
    priority_app_categories: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("priority_app_categories", "priority_apps_categories"),
    )
    condition_type: Optional[ConditionType] = None

    @field_validator(
        "apps", "app_categories", "priority_apps", "priority_app_categories", "resource_type",
        mode="before",
    )
    @classmethod
    def coerce_list(cls, v: Any, info: ValidationInfo) -> Any:
        v = _as_list(v)
        if isinstance(v, list):
            v = [item.strip() if isinstance(item, str) else item for item in v]
            v = [item for item in v if item != ""]
            if info.field_name == "resource_type":
                v = [item.lower() if isinstance(item, str) else item for item in v]
        return v

    @field_validator("condition_type", mode="before")
    @classmethod
    def lower_condition(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    @field_validator(
        "apps", "app_categories", "priority_apps", "priority_app_categories", "resource_type",
    )
    @classmethod
    def dedupe(cls, v: Optional[List[Any]]) -> Optional[List[Any]]:
        return _dedupe(v)

    def mentions(self, resource: ResourceType) -> bool:
        return bool(self.resource_type) and resource in self.resource_type


class QueryAnalysis(BaseModel):
    """
    The classifier's verdict for one query.

    Frozen: the category is assigned once and never changes for the
    lifetime of the request.

    Example:
        QueryAnalysis(
            category=QueryCategory.MONITORING,
            params=ExtractedParameters(
                apps=["TikTok"],
                resource_type=["data"],
                thresholds={"data": "2GB"},   # stored as 2000
            ),
        )
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: QueryCategory
    params: ExtractedParameters = Field(
        default_factory=ExtractedParameters,
        validation_alias=AliasChoices("params", "extracted_params"),
    )
    source: ClassificationSource = ClassificationSource.MODEL

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, v: Any) -> Any:
        return {} if v is None else v

    def to_prompt_dict(self) -> dict:
        """Classification as embedded in the recommendation prompt."""
        return {
            "category": int(self.category),
            "category_name": self.category.display_name,
            "extracted_params": self.params.model_dump(mode="json", exclude_none=True),
        }
