"""
Tests for the deterministic synthesis rules and the offline analyzer.

Tests for:
- Monitoring alerts (thresholds, defaults, system sentinel)
- Optimization ranking and priority-app exclusion
- Information rankings
- Predictive estimates
- Offline analysis and its equivalence with the normalizer fill-in
"""

import json

import pytest

from powerguard.core.config import settings
from powerguard.core.exceptions import InvalidCategoryError
from powerguard.ai.actions.registry import ActionableType
from powerguard.ai.intent.classifier import classify_by_keywords
from powerguard.ai.intent.schemas import ExtractedParameters, QueryAnalysis, QueryCategory
from powerguard.ai.pipeline.offline import OfflineAnalyzer
from powerguard.ai.response import synthesis
from powerguard.ai.response.normalizer import ResponseNormalizer
from powerguard.ai.schemas.analysis import InsightType, ResultSource, Severity
from powerguard.telemetry.schemas import BatteryState, DeviceSnapshot


def _effects(actionables):
    return [(a.type, a.package_name, a.parameters) for a in actionables]


# ===========================================================================
# MONITORING
# ===========================================================================

class TestMonitoringSynthesis:
    """Tests for synthesize_monitoring_actionables()."""

    def test_battery_percentage(self, snapshot):
        alerts = synthesis.synthesize_monitoring_actionables("Alert me when battery drops to 15%", snapshot)

        assert len(alerts) == 1
        assert alerts[0].type == ActionableType.SET_ALERT
        assert alerts[0].package_name == "system"
        assert alerts[0].parameters == {"resource": "battery", "threshold": "15"}

    def test_data_amount_for_named_app(self, snapshot):
        alerts = synthesis.synthesize_monitoring_actionables("Alert me if TikTok uses more than 500MB", snapshot)

        assert alerts[0].package_name == "com.zhiliaoapp.musically"
        assert alerts[0].parameters == {"resource": "data", "threshold_mb": "500"}

    def test_gigabytes_converted(self, snapshot):
        alerts = synthesis.synthesize_monitoring_actionables("Notify me when TikTok uses 2GB", snapshot)

        assert alerts[0].parameters["threshold_mb"] == "2000"

    def test_app_missing_from_snapshot_uses_system(self, snapshot):
        alerts = synthesis.synthesize_monitoring_actionables("Notify me when Netflix uses 1GB", snapshot)

        assert alerts[0].package_name == "system"

    def test_defaults_when_no_numbers(self, snapshot):
        alerts = synthesis.synthesize_monitoring_actionables("Alert me about battery and data", snapshot)

        assert _effects(alerts) == [
            (ActionableType.SET_ALERT, "system",
             {"resource": "battery", "threshold": str(settings.DEFAULT_BATTERY_ALERT_PERCENT)}),
            (ActionableType.SET_ALERT, "system",
             {"resource": "data", "threshold_mb": str(settings.DEFAULT_DATA_ALERT_MB)}),
        ]

    def test_nothing_mentioned_means_battery(self, snapshot):
        alerts = synthesis.synthesize_monitoring_actionables("Notify me", snapshot)

        assert alerts[0].parameters["resource"] == "battery"

    def test_classifier_thresholds_and_condition_used(self, snapshot):
        params = ExtractedParameters(
            resource_type=["data"],
            thresholds={"data": "3GB"},
            condition_type="exceeds_usage",
        )

        alerts = synthesis.synthesize_monitoring_actionables("Notify me about usage", snapshot, params)

        assert alerts[0].parameters == {"resource": "data", "threshold_mb": "3000", "condition": "exceeds_usage"}


# ===========================================================================
# OPTIMIZATION
# ===========================================================================

class TestOptimizationSynthesis:
    """Tests for synthesize_optimization()."""

    def test_save_battery_keeps_whatsapp(self, snapshot):
        actionables, insights = synthesis.synthesize_optimization(
            "Save battery but keep WhatsApp running", snapshot
        )

        assert [a.package_name for a in actionables] == [
            "com.google.android.youtube",
            "com.zhiliaoapp.musically",
            "com.instagram.android",
        ]
        for actionable in actionables:
            assert actionable.type == ActionableType.SET_STANDBY_BUCKET
            assert actionable.new_mode == "restricted"
            assert actionable.parameters == {"new_mode": "restricted"}
            assert actionable.estimated_battery_savings_minutes == 10.0
        assert "com.whatsapp" not in {a.package_name for a in actionables}
        assert insights[0].title == "Priority Apps Kept Running"
        assert "WhatsApp" in insights[0].description

    def test_data_restricts_background_consumers(self, snapshot):
        actionables, insights = synthesis.synthesize_optimization("Optimize my data usage", snapshot)

        assert _effects(actionables) == [
            (ActionableType.RESTRICT_BACKGROUND_DATA, "com.google.android.youtube", {}),
            (ActionableType.RESTRICT_BACKGROUND_DATA, "com.instagram.android", {}),
            (ActionableType.RESTRICT_BACKGROUND_DATA, "com.android.chrome", {}),
        ]
        assert insights == []

    @pytest.mark.parametrize("query", [
        "Save battery on my mobile phone",
        "Save battery while on wifi",
        "Extend battery, my network is slow",
    ])
    def test_network_words_do_not_restrict_data(self, snapshot, query):
        actionables, _ = synthesis.synthesize_optimization(query, snapshot)

        assert len(actionables) == 3
        assert all(a.type == ActionableType.SET_STANDBY_BUCKET for a in actionables)

    def test_battery_and_data_both_requested(self, snapshot):
        actionables, _ = synthesis.synthesize_optimization("Save battery and data", snapshot)

        assert [a.type for a in actionables] == (
            [ActionableType.SET_STANDBY_BUCKET] * 3 + [ActionableType.RESTRICT_BACKGROUND_DATA] * 3
        )

    def test_priority_apps_from_params(self, snapshot):
        params = ExtractedParameters(priority_apps=["YouTube"])

        actionables, _ = synthesis.synthesize_optimization("Save battery", snapshot, params)

        assert "com.google.android.youtube" not in {a.package_name for a in actionables}

    def test_zero_usage_apps_skipped(self):
        snapshot = DeviceSnapshot(battery=BatteryState(level=50), apps=[
            {"package_name": "com.idle", "app_name": "Idle", "battery_usage_percent": 0.0},
            {"package_name": "com.busy", "app_name": "Busy", "battery_usage_percent": 5.0},
        ])

        actionables, _ = synthesis.synthesize_optimization("Save battery", snapshot)

        assert [a.package_name for a in actionables] == ["com.busy"]

    def test_ties_keep_snapshot_order(self):
        snapshot = DeviceSnapshot(battery=BatteryState(level=50), apps=[
            {"package_name": f"com.app{i}", "app_name": f"App{i}", "battery_usage_percent": 5.0}
            for i in range(5)
        ])

        actionables, _ = synthesis.synthesize_optimization("Save battery", snapshot)

        assert [a.package_name for a in actionables] == ["com.app0", "com.app1", "com.app2"]

    def test_empty_snapshot_gives_nothing(self, empty_snapshot):
        actionables, insights = synthesis.synthesize_optimization("Save battery", empty_snapshot)

        assert actionables == []
        assert insights == []


# ===========================================================================
# INFORMATION AND PREDICTION
# ===========================================================================

class TestInformationSynthesis:
    """Tests for synthesize_information()."""

    def test_top_three_data_apps(self, snapshot):
        insights = synthesis.synthesize_information("Top 3 data apps today", snapshot)

        assert len(insights) == 1
        assert insights[0].type == InsightType.DATA
        assert insights[0].title == "Top 3 Data-Consuming Apps"
        assert insights[0].description == "1. YouTube (450 MB)\n2. Chrome (120 MB)\n3. Instagram (87 MB)"

    def test_battery_ranking_defaults_to_three(self, snapshot):
        insights = synthesis.synthesize_information("Which apps drain my battery?", snapshot)

        assert insights[0].type == InsightType.BATTERY
        assert insights[0].description.splitlines() == [
            "1. YouTube (18.5%)",
            "2. WhatsApp (16.0%)",
            "3. TikTok (15.0%)",
        ]

    def test_background_ranking(self, snapshot):
        insights = synthesis.synthesize_information("Top 2 background data apps", snapshot)

        assert insights[0].description == "1. YouTube (120 MB)\n2. Instagram (60 MB)"

    def test_single_app(self, snapshot):
        insights = synthesis.synthesize_information("How much data has Spotify used?", snapshot)

        assert insights[0].title == "Spotify Usage"
        assert "45 MB" in insights[0].description

    def test_no_apps(self, empty_snapshot):
        insights = synthesis.synthesize_information("Top 3 data apps", empty_snapshot)

        assert insights[0].description == "No app usage data is available yet."


class TestPredictionSynthesis:
    """Tests for synthesize_prediction()."""

    def test_enough_battery(self, snapshot):
        params = ExtractedParameters(apps=["Spotify"], app_categories=["music"], duration={"value": 2, "unit": "hours"})

        insights = synthesis.synthesize_prediction("Can I listen to Spotify for 2 hours on battery?", snapshot, params)

        assert insights[0].type == InsightType.PREDICTION
        assert insights[0].description.startswith("Yes.")
        assert insights[0].severity == Severity.LOW

    def test_not_enough_battery(self, snapshot):
        params = ExtractedParameters(app_categories=["streaming"], duration={"value": 6, "unit": "hours"})

        insights = synthesis.synthesize_prediction("Can I watch Netflix for 6 hours?", snapshot, params)

        assert insights[0].description.startswith("No.")
        assert insights[0].severity == Severity.HIGH

    def test_data_sufficiency(self, snapshot):
        insights = synthesis.synthesize_prediction("Do I have enough data to stream for 2 hours?", snapshot)

        # 1800 MB left, 2 hours at the default rate needs 200 MB
        assert len(insights) == 1
        assert insights[0].description.startswith("Yes.")

    def test_charging_is_always_enough(self):
        snapshot = DeviceSnapshot(battery=BatteryState(level=5, is_charging=True))

        insights = synthesis.synthesize_prediction("Will my battery last 10 hours?", snapshot)

        assert insights[0].description.startswith("Yes.")


class TestDeriveScores:
    """Tests for derive_scores()."""

    def test_with_data_plan(self, snapshot):
        assert synthesis.derive_scores(snapshot) == (64.0, 36.0, 50.0)

    def test_without_data_plan(self):
        snapshot = DeviceSnapshot(battery=BatteryState(level=80), apps=[
            {"package_name": "com.a", "app_name": "A", "background_bytes": 200 * 1024 * 1024},
        ])

        assert synthesis.derive_scores(snapshot) == (80.0, 90.0, 85.0)


# ===========================================================================
# OFFLINE ANALYZER
# ===========================================================================

class TestOfflineAnalyzer:
    """Tests for OfflineAnalyzer.analyze()."""

    def test_information_never_has_actionables(self, snapshot):
        query = "Top 3 data apps today"

        result = OfflineAnalyzer().analyze(classify_by_keywords(query), snapshot, query)

        assert result.source == ResultSource.OFFLINE
        assert result.actionables == []
        assert result.insights[0].title == "Top 3 Data-Consuming Apps"

    def test_monitoring(self, snapshot):
        query = "Alert me if TikTok uses more than 500MB"

        result = OfflineAnalyzer().analyze(classify_by_keywords(query), snapshot, query)

        alert = result.actionables[0]
        assert alert.package_name == "com.zhiliaoapp.musically"
        assert alert.parameters["threshold_mb"] == "500"
        assert alert.parameters["condition"] == "exceeds_usage"
        assert result.insights[0].type == InsightType.MONITORING

    def test_optimization_savings_summed(self, snapshot):
        query = "Save battery but keep WhatsApp running"

        result = OfflineAnalyzer().analyze(classify_by_keywords(query), snapshot, query)

        assert len(result.actionables) == 3
        assert result.estimated_savings.battery_minutes == 30.0
        assert result.battery_score == 64.0

    def test_prediction(self, snapshot):
        query = "Can I watch Netflix for 3 hours?"

        result = OfflineAnalyzer().analyze(classify_by_keywords(query), snapshot, query)

        assert result.category == QueryCategory.PREDICTIVE
        assert result.insights[0].type == InsightType.PREDICTION

    def test_empty_snapshot_degrades(self, empty_snapshot):
        query = "Save battery"

        result = OfflineAnalyzer().analyze(classify_by_keywords(query), empty_snapshot, query)

        assert result.actionables == []
        assert len(result.insights) == 1

    def test_invalid_category_raises(self, snapshot):
        with pytest.raises(InvalidCategoryError):
            OfflineAnalyzer().analyze(QueryAnalysis(category=QueryCategory.INVALID), snapshot, "")


class TestFallbackEquivalence:
    """The offline path and the normalizer fill-in agree."""

    @pytest.mark.parametrize("query", [
        "Save battery but keep WhatsApp running",
        "Optimize my data usage",
        "Save battery",
        "Save battery on my mobile phone",
    ])
    def test_optimization(self, snapshot, query):
        analysis = classify_by_keywords(query)

        offline = OfflineAnalyzer().analyze(analysis, snapshot, query)
        normalized = ResponseNormalizer().normalize(
            QueryCategory.OPTIMIZATION,
            json.dumps({"insights": [], "actionable": []}),
            snapshot,
            query,
            analysis.params,
        )

        assert _effects(offline.actionables) == _effects(normalized.actionables)
        assert {a.id for a in offline.actionables}.isdisjoint({a.id for a in normalized.actionables})

    def test_monitoring(self, snapshot):
        query = "Notify me when TikTok uses 2GB"
        analysis = classify_by_keywords(query)

        offline = OfflineAnalyzer().analyze(analysis, snapshot, query)
        normalized = ResponseNormalizer().normalize(
            QueryCategory.MONITORING, '{"actionable": []}', snapshot, query, analysis.params
        )

        assert _effects(offline.actionables) == _effects(normalized.actionables)
