"""
Deterministic Synthesis - Model-free insights and actionables.

These rules run in two places:
- the normalizer, when the model answered an OPTIMIZATION or MONITORING
  query without any usable actionable
- the offline analyzer, when the model was never reached

Both call the same functions with the same snapshot, so the two paths
produce the same ranking and the same parameters.

Rules:
======
MONITORING    one SetAlert per resource mentioned ("15%", "500MB", "2GB");
              battery defaults to 20%, data to 1000 MB; battery when
              nothing is mentioned
OPTIMIZATION  rank apps by battery share or background bytes, skip the apps
              the user wants kept, restrict the top 3
INFORMATION   ranked top-N list, N defaults to 3
PREDICTIVE    battery / data sufficiency estimate from the snapshot
"""

import logging
from typing import List, Optional, Tuple

from powerguard.core.config import settings
from powerguard.telemetry.schemas import DeviceSnapshot, AppUsage
from powerguard.ai.actions.registry import ActionableType, actionable_registry
from powerguard.ai.intent import keywords
from powerguard.ai.intent.schemas import ExtractedParameters, ResourceType
from powerguard.ai.schemas.analysis import Actionable, Insight, InsightType, Severity

logger = logging.getLogger("powerguard.ai.response.synthesis")


SYSTEM_PACKAGE = "system"
RESTRICTED_MODE = "restricted"
MIN_SHARED_TOKEN_LENGTH = 4

# Rough drain rates per app category, percent of battery per hour
DRAIN_PERCENT_PER_HOUR = {
    "streaming": 15.0,
    "games": 20.0,
    "navigation": 12.0,
    "video_calls": 18.0,
    "music": 10.0,
    "social": 10.0,
}
DEFAULT_DRAIN_PERCENT_PER_HOUR = 8.0

# Rough data rates per app category, MB per hour
DATA_MB_PER_HOUR = {
    "streaming": 700.0,
    "video_calls": 500.0,
    "social": 300.0,
    "navigation": 20.0,
    "music": 70.0,
}
DEFAULT_DATA_MB_PER_HOUR = 100.0


# ---------------------------------------------------------------------------
# SHARED HELPERS
# ---------------------------------------------------------------------------

def format_mb(mb: float) -> str:
    if mb >= 1000:
        return f"{mb / 1000:.1f} GB"
    return f"{mb:.0f} MB"


def requested_resources(query: str, params: Optional[ExtractedParameters] = None) -> List[ResourceType]:
    """
    Resources a query is about, battery first.

    The query text wins; the classifier's resource_type is the tiebreak
    when the text names neither.
    """
    resources = []
    if keywords.mentions_battery(query):
        resources.append(ResourceType.BATTERY)
    if keywords.mentions_data(query):
        resources.append(ResourceType.DATA)
    if not resources and params is not None and params.resource_type:
        resources = [r for r in (ResourceType.BATTERY, ResourceType.DATA) if r in params.resource_type]
    return resources


def find_mentioned_app(query: str, snapshot: DeviceSnapshot) -> Optional[AppUsage]:
    """First snapshot app whose name or package appears in the query."""
    lowered = query.lower()
    for app in snapshot.apps:
        if keywords.contains_phrase(query, app.app_name) or app.package_name.lower() in lowered:
            return app
    return None


def find_excluded_apps(
    query: str,
    snapshot: DeviceSnapshot,
    params: Optional[ExtractedParameters] = None,
) -> List[AppUsage]:
    """
    Apps the user intends to keep unrestricted.

    An app is excluded when its name or package appears in the query, when
    its name shares a token of at least four characters with the query, or
    when the classifier listed it among the priority apps.
    """
    lowered = query.lower()
    query_tokens = keywords.tokens(query, MIN_SHARED_TOKEN_LENGTH)

    priority_names = set()
    if params is not None and params.priority_apps:
        priority_names = {name.lower() for name in params.priority_apps}
    known_packages = {
        keywords.KNOWN_APP_PACKAGES[name] for name in keywords.find_known_apps(query)
    }

    excluded = []
    for app in snapshot.apps:
        name = app.app_name.lower()
        if (
            name in lowered
            or app.package_name.lower() in lowered
            or app.package_name in known_packages
            or name in priority_names
            or keywords.tokens(app.app_name, MIN_SHARED_TOKEN_LENGTH) & query_tokens
        ):
            excluded.append(app)
    return excluded


# ---------------------------------------------------------------------------
# MONITORING
# ---------------------------------------------------------------------------

def synthesize_monitoring_actionables(
    query: str,
    snapshot: DeviceSnapshot,
    params: Optional[ExtractedParameters] = None,
) -> List[Actionable]:
    """
    One SetAlert per resource the query mentions.

    Thresholds come from the query text, then from the classifier's
    thresholds, then from the configured defaults.
    """
    resources = requested_resources(query, params) or [ResourceType.BATTERY]
    app = find_mentioned_app(query, snapshot)
    package_name = app.package_name if app else SYSTEM_PACKAGE
    subject = f"{app.app_name} " if app else ""
    thresholds = params.thresholds if params is not None else None

    extra = {}
    if params is not None and params.condition_type is not None:
        extra["condition"] = params.condition_type.value

    actionables = []
    if ResourceType.BATTERY in resources:
        threshold = keywords.find_battery_threshold(query)
        if threshold is None and thresholds is not None:
            threshold = thresholds.battery
        if threshold is None:
            threshold = settings.DEFAULT_BATTERY_ALERT_PERCENT

        actionables.append(Actionable(
            type=ActionableType.SET_ALERT,
            package_name=package_name,
            description=f"Alert when battery level reaches {threshold}%",
            reason="User requested battery monitoring",
            severity=2,
            parameters={"resource": "battery", "threshold": threshold, **extra},
        ))

    if ResourceType.DATA in resources:
        threshold_mb = keywords.find_data_threshold_mb(query)
        if threshold_mb is None and thresholds is not None:
            threshold_mb = thresholds.data
        if threshold_mb is None:
            threshold_mb = settings.DEFAULT_DATA_ALERT_MB

        actionables.append(Actionable(
            type=ActionableType.SET_ALERT,
            package_name=package_name,
            description=f"Alert when {subject}data usage reaches {threshold_mb} MB",
            reason="User requested data usage monitoring",
            severity=2,
            parameters={"resource": "data", "threshold_mb": threshold_mb, **extra},
        ))

    logger.debug(f"Synthesized {len(actionables)} monitoring actionables for {package_name}")
    return actionables


# ---------------------------------------------------------------------------
# OPTIMIZATION
# ---------------------------------------------------------------------------

def optimization_resources(query: str, params: Optional[ExtractedParameters] = None) -> List[ResourceType]:
    """Battery unless the query asks about data."""
    return requested_resources(query, params) or [ResourceType.BATTERY]


def rank_optimization_targets(
    snapshot: DeviceSnapshot,
    resource: ResourceType,
    excluded: List[AppUsage],
    limit: Optional[int] = None,
) -> List[AppUsage]:
    """Highest consumers first, excluded apps skipped, ties in snapshot order."""
    limit = limit or settings.OPTIMIZATION_TOP_N
    excluded_packages = {app.package_name for app in excluded}
    candidates = [app for app in snapshot.apps if app.package_name not in excluded_packages]

    if resource == ResourceType.BATTERY:
        candidates = [app for app in candidates if app.battery_usage_percent > 0]
        candidates.sort(key=lambda app: app.battery_usage_percent, reverse=True)
    else:
        candidates = [app for app in candidates if app.background_bytes > 0]
        candidates.sort(key=lambda app: app.background_bytes, reverse=True)
    return candidates[:limit]


def synthesize_optimization(
    query: str,
    snapshot: DeviceSnapshot,
    params: Optional[ExtractedParameters] = None,
) -> Tuple[List[Actionable], List[Insight]]:
    """
    Restrict the top consumers, leaving the user's kept apps alone.

    Returns:
        (actionables, insights): insights name the kept apps, if any
    """
    excluded = find_excluded_apps(query, snapshot, params)
    actionables: List[Actionable] = []

    for resource in optimization_resources(query, params):
        for app in rank_optimization_targets(snapshot, resource, excluded):
            if resource == ResourceType.BATTERY:
                actionables.append(_standby_actionable(app))
            else:
                actionables.append(_background_data_actionable(app))

    insights = []
    if excluded:
        names = ", ".join(app.app_name for app in excluded)
        insights.append(Insight(
            type=InsightType.OPTIMIZATION,
            title="Priority Apps Kept Running",
            description=f"{names} will not be restricted.",
            severity=Severity.LOW,
        ))

    logger.debug(
        f"Synthesized {len(actionables)} optimization actionables, {len(excluded)} apps excluded"
    )
    return actionables, insights


def _standby_actionable(app: AppUsage) -> Actionable:
    definition = actionable_registry.get(ActionableType.SET_STANDBY_BUCKET)
    return Actionable(
        type=ActionableType.SET_STANDBY_BUCKET,
        package_name=app.package_name,
        description=f"Restrict background activity for {app.app_name}",
        reason=f"{app.app_name} used {app.battery_usage_percent:.1f}% of battery",
        new_mode=RESTRICTED_MODE,
        estimated_battery_savings_minutes=definition.default_battery_minutes,
        severity=3,
        parameters={"new_mode": RESTRICTED_MODE},
    )


def _background_data_actionable(app: AppUsage) -> Actionable:
    definition = actionable_registry.get(ActionableType.RESTRICT_BACKGROUND_DATA)
    return Actionable(
        type=ActionableType.RESTRICT_BACKGROUND_DATA,
        package_name=app.package_name,
        description=f"Restrict background data for {app.app_name}",
        reason=f"{app.app_name} used {format_mb(app.background_mb)} in the background",
        estimated_data_savings_mb=definition.default_data_mb,
        severity=3,
    )


# ---------------------------------------------------------------------------
# INFORMATION
# ---------------------------------------------------------------------------

def synthesize_information(
    query: str,
    snapshot: DeviceSnapshot,
    params: Optional[ExtractedParameters] = None,
) -> List[Insight]:
    """Ranked top-N usage list, or the usage of the one app asked about."""
    resources = requested_resources(query, params)
    resource = ResourceType.DATA if ResourceType.DATA in resources else ResourceType.BATTERY
    insight_type = InsightType.DATA if resource == ResourceType.DATA else InsightType.BATTERY

    if not snapshot.apps:
        return [Insight(
            type=insight_type,
            title="Usage Information",
            description="No app usage data is available yet.",
            severity=Severity.LOW,
        )]

    app = find_mentioned_app(query, snapshot)
    if app is not None:
        if resource == ResourceType.DATA:
            usage = f"{app.app_name} has used {format_mb(app.total_mb)} of data ({format_mb(app.background_mb)} in the background)."
        else:
            usage = f"{app.app_name} has used {app.battery_usage_percent:.1f}% of battery."
        return [Insight(type=insight_type, title=f"{app.app_name} Usage", description=usage, severity=Severity.LOW)]

    limit = (params.limit if params is not None else None) or keywords.find_limit(query) or settings.DEFAULT_TOP_N
    background = keywords.contains_phrase(query, "background") or (
        params is not None and params.context == "background"
    )

    if resource == ResourceType.DATA:
        key = (lambda a: a.background_bytes) if background else (lambda a: a.total_bytes)
        ranked = sorted(snapshot.apps, key=key, reverse=True)[:limit]
        lines = [
            f"{i}. {a.app_name} ({format_mb(a.background_mb if background else a.total_mb)})"
            for i, a in enumerate(ranked, 1)
        ]
        title = f"Top {len(ranked)} Data-Consuming Apps"
    else:
        ranked = snapshot.top_battery_apps(limit)
        lines = [f"{i}. {a.app_name} ({a.battery_usage_percent:.1f}%)" for i, a in enumerate(ranked, 1)]
        title = f"Top {len(ranked)} Battery-Consuming Apps"

    return [Insight(type=insight_type, title=title, description="\n".join(lines), severity=Severity.LOW)]


# ---------------------------------------------------------------------------
# PREDICTIVE
# ---------------------------------------------------------------------------

def _hours_requested(params: Optional[ExtractedParameters]) -> Optional[float]:
    if params is None or params.duration is None:
        return None
    return params.duration.minutes / 60


def _rate_for(params: Optional[ExtractedParameters], table: dict, default: float) -> float:
    categories = list(params.app_categories or []) if params is not None else []
    if params is not None and params.apps:
        categories += [keywords.KNOWN_APP_CATEGORIES.get(app, "") for app in params.apps]
    rates = [table[c.lower()] for c in categories if c and c.lower() in table]
    # Running several apps together drains at least as fast as the heaviest one
    return max(rates) if rates else default


def synthesize_prediction(
    query: str,
    snapshot: DeviceSnapshot,
    params: Optional[ExtractedParameters] = None,
) -> List[Insight]:
    """Yes/no sufficiency estimate with a confidence level."""
    resources = requested_resources(query, params) or [ResourceType.BATTERY]
    hours = _hours_requested(params)
    if hours is None:
        duration = keywords.find_duration(query)
        hours = duration.minutes / 60 if duration else None

    insights = []
    if ResourceType.BATTERY in resources:
        insights.append(_predict_battery(snapshot, params, hours))
    if ResourceType.DATA in resources:
        insights.append(_predict_data(snapshot, params, hours))
    return insights


def _predict_battery(snapshot: DeviceSnapshot, params, hours: Optional[float]) -> Insight:
    level = snapshot.battery.level
    rate = _rate_for(params, DRAIN_PERCENT_PER_HOUR, DEFAULT_DRAIN_PERCENT_PER_HOUR)
    hours_left = level / rate

    if snapshot.battery.is_charging:
        return Insight(
            type=InsightType.PREDICTION,
            title="Resource Prediction",
            description=f"Yes. Your battery is at {level}% and charging. Confidence: high.",
            severity=Severity.LOW,
        )

    if hours is None:
        return Insight(
            type=InsightType.PREDICTION,
            title="Resource Prediction",
            description=(
                f"Your battery is at {level}%, which should last about {hours_left:.1f} hours "
                f"at roughly {rate:.0f}% per hour. Confidence: low."
            ),
            severity=Severity.MEDIUM,
        )

    needed = rate * hours
    enough = level >= needed
    verdict = "Yes" if enough else "No"
    description = (
        f"{verdict}. {hours:g} hours at roughly {rate:.0f}% per hour needs about {needed:.0f}% "
        f"and your battery is at {level}% (about {hours_left:.1f} hours left). Confidence: medium."
    )
    if not enough:
        description += " Charge your device or close background apps before you start."
    return Insight(
        type=InsightType.PREDICTION,
        title="Resource Prediction",
        description=description,
        severity=Severity.LOW if enough else Severity.HIGH,
    )


def _predict_data(snapshot: DeviceSnapshot, params, hours: Optional[float]) -> Insight:
    rate = _rate_for(params, DATA_MB_PER_HOUR, DEFAULT_DATA_MB_PER_HOUR)
    remaining = snapshot.data_remaining_mb
    needed = rate * hours if hours is not None else None

    if remaining is None:
        if needed is None:
            description = f"Data plan details are unavailable. Typical usage is about {format_mb(rate)} per hour. Confidence: low."
        else:
            description = (
                f"Data plan details are unavailable. {hours:g} hours would use about "
                f"{format_mb(needed)}. Confidence: low."
            )
        return Insight(type=InsightType.PREDICTION, title="Resource Prediction", description=description)

    if needed is None:
        return Insight(
            type=InsightType.PREDICTION,
            title="Resource Prediction",
            description=(
                f"You have {format_mb(remaining)} of data left, about {remaining / rate:.1f} hours "
                f"at {format_mb(rate)} per hour. Confidence: low."
            ),
        )

    enough = remaining >= needed
    verdict = "Yes" if enough else "No"
    return Insight(
        type=InsightType.PREDICTION,
        title="Resource Prediction",
        description=(
            f"{verdict}. {hours:g} hours needs about {format_mb(needed)} and you have "
            f"{format_mb(remaining)} left. Confidence: medium."
        ),
        severity=Severity.LOW if enough else Severity.HIGH,
    )


# ---------------------------------------------------------------------------
# SCORES
# ---------------------------------------------------------------------------

def derive_scores(snapshot: DeviceSnapshot) -> Tuple[float, float, float]:
    """
    (battery, data, performance) scores on a 0-100 scale.

    battery is the charge level. data is the share of the plan left when
    the plan is known, otherwise it drops by one point per 20 MB of
    background traffic. performance is the mean of the two.
    """
    battery_score = float(snapshot.battery.level)

    if snapshot.data_plan_mb and snapshot.data_remaining_mb is not None:
        data_score = 100.0 * snapshot.data_remaining_mb / snapshot.data_plan_mb
    else:
        background_mb = sum(app.background_mb for app in snapshot.apps)
        data_score = 100.0 - min(background_mb / 20.0, 100.0)

    data_score = min(max(data_score, 0.0), 100.0)
    return battery_score, round(data_score, 1), round((battery_score + data_score) / 2, 1)
