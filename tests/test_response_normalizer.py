"""
Tests for the Response Normalizer and the payload locator.

Tests for:
- Locating the JSON object inside prose and code fences
- Information results never carrying actionables
- Allow-list filtering and dropped-element reporting
- Fresh ids on every normalization
- Package resolution and alert thresholds
- Deterministic fill-in for optimization / monitoring
- Scores and savings
"""

import json

import pytest

from powerguard.core.exceptions import InvalidCategoryError, PayloadParseError
from powerguard.ai.actions.registry import ActionableType
from powerguard.ai.intent.schemas import QueryCategory
from powerguard.ai.response.normalizer import DEGRADED_MESSAGE, ResponseNormalizer
from powerguard.ai.response.payload import extract_json_object
from powerguard.ai.schemas.analysis import InsightType, ResultSource


def payload(**data) -> str:
    return json.dumps(data)


@pytest.fixture
def normalizer() -> ResponseNormalizer:
    return ResponseNormalizer()


# ===========================================================================
# PAYLOAD LOCATOR
# ===========================================================================

class TestExtractJsonObject:
    """Tests for extract_json_object()."""

    def test_plain_object(self):
        assert extract_json_object('{"insights": []}') == {"insights": []}

    def test_object_inside_prose_and_fences(self):
        raw = 'Sure! Here is the analysis:\n```json\n{"batteryScore": 70}\n```\nLet me know.'

        assert extract_json_object(raw) == {"batteryScore": 70}

    @pytest.mark.parametrize("raw", ["", "no json here", "} backwards {", '{"broken": '])
    def test_unparseable_raises(self, raw):
        with pytest.raises(PayloadParseError):
            extract_json_object(raw)

    def test_array_without_object_raises(self):
        with pytest.raises(PayloadParseError):
            extract_json_object('["a", "b"]')

    def test_object_inside_array_is_located(self):
        assert extract_json_object('[{"a": 1}]') == {"a": 1}


# ===========================================================================
# CATEGORY CONTRACT
# ===========================================================================

class TestCategoryContract:
    """INVALID and unknown categories are caller bugs."""

    @pytest.mark.parametrize("category", [QueryCategory.INVALID, 0, 7])
    def test_invalid_category_raises(self, normalizer, snapshot, category):
        with pytest.raises(InvalidCategoryError):
            normalizer.normalize(category, "{}", snapshot, "anything")


# ===========================================================================
# INFORMATION
# ===========================================================================

class TestInformationPayloads:
    """Information results are insights only."""

    def test_actionables_from_model_ignored(self, normalizer, snapshot):
        raw = payload(
            insights=[{"type": "Information", "title": "Top Apps", "description": "1. YouTube (450 MB)"}],
            actionable=[{"type": "KillApp", "package_name": "com.google.android.youtube", "description": "x"}],
        )

        result = normalizer.normalize(QueryCategory.INFORMATION, raw, snapshot, "Which apps use the most battery?")

        assert result.actionables == []
        assert result.insights[0].description == "1. YouTube (450 MB)"
        assert result.source == ResultSource.MODEL

    def test_data_query_retags_insights(self, normalizer, snapshot):
        raw = payload(insights=[
            {"type": "Information", "title": "Top 3", "description": "1. YouTube (450 MB)"},
            {"type": "battery", "title": "Note", "description": "Chrome is second"},
        ])

        result = normalizer.normalize(QueryCategory.INFORMATION, raw, snapshot, "Top 3 data apps today")

        assert [i.type for i in result.insights] == [InsightType.DATA, InsightType.DATA]

    def test_plain_text_becomes_single_insight(self, normalizer, snapshot):
        text = "YouTube used the most battery today."

        result = normalizer.normalize(QueryCategory.INFORMATION, text, snapshot, "Which app drains battery?")

        assert len(result.insights) == 1
        assert result.insights[0].description == text
        assert result.insights[0].type == InsightType.INFORMATION

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_payload_degrades(self, normalizer, snapshot, raw):
        result = normalizer.normalize(QueryCategory.PREDICTIVE, raw, snapshot, "Can I stream for 2 hours?")

        assert len(result.insights) == 1
        assert result.insights[0].description == DEGRADED_MESSAGE
        assert result.actionables == []

    def test_string_insights_accepted(self, normalizer, snapshot):
        raw = payload(insights=["Battery will last about 4 hours."])

        result = normalizer.normalize(QueryCategory.PREDICTIVE, raw, snapshot, "Will my battery last?")

        assert result.insights[0].type == InsightType.PREDICTION
        assert result.insights[0].description == "Battery will last about 4 hours."


# ===========================================================================
# ACTIONABLES
# ===========================================================================

class TestActionableFiltering:
    """Allow-list filtering and element validation."""

    def test_unknown_type_dropped_and_reported(self, normalizer, snapshot):
        raw = payload(
            insights=[{"description": "Restricting heavy apps"}],
            actionable=[
                {"type": "RebootDevice", "package_name": "system", "description": "Reboot"},
                {"type": "set_standby_bucket", "package_name": "YouTube", "description": "Restrict YouTube",
                 "new_mode": "restricted"},
            ],
        )

        report = normalizer.normalize_with_report(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")

        assert [a.type for a in report.result.actionables] == [ActionableType.SET_STANDBY_BUCKET]
        assert report.result.actionables[0].package_name == "com.google.android.youtube"
        assert len(report.dropped) == 1
        assert "RebootDevice" in report.dropped[0]
        assert report.synthesized is False

    def test_every_emitted_type_is_allow_listed(self, normalizer, snapshot):
        raw = payload(actionable=[
            {"type": t, "package_name": "com.app", "description": "d", "threshold": 20}
            for t in ("KillApp", "DeleteFiles", "ManageWakeLocks", "root_device", "set_alarm")
        ])

        result = normalizer.normalize(QueryCategory.OPTIMIZATION, raw, snapshot, "Optimize battery")

        assert {a.type for a in result.actionables} <= set(ActionableType)
        assert len(result.actionables) == 3

    def test_model_ids_replaced_with_fresh_ids(self, normalizer, snapshot):
        raw = payload(actionable=[{
            "id": "00000000-0000-0000-0000-000000000001",
            "type": "KillApp",
            "package_name": "com.android.chrome",
            "description": "Stop Chrome",
        }])

        first = normalizer.normalize(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")
        second = normalizer.normalize(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")

        a, b = first.actionables[0], second.actionables[0]
        assert str(a.id) != "00000000-0000-0000-0000-000000000001"
        assert a.id != b.id
        assert a.same_effect_as(b)

    def test_element_without_package_dropped(self, normalizer, snapshot):
        raw = payload(actionable=[{"type": "KillApp", "description": "Stop something"}, "not an object"])

        report = normalizer.normalize_with_report(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")

        assert len(report.dropped) == 2
        # Nothing usable survived, so the deterministic rules filled in
        assert report.synthesized is True
        assert report.result.actionables

    def test_optional_fields_carried(self, normalizer, snapshot):
        raw = payload(actionable=[{
            "type": "RestrictBackgroundData",
            "package_name": "Instagram",
            "description": "Block Instagram background data",
            "reason": "60 MB in background",
            "estimated_data_savings": 25,
            "severity": 4,
            "throttle_level": 2,
        }])

        result = normalizer.normalize(QueryCategory.OPTIMIZATION, raw, snapshot, "Save data")

        actionable = result.actionables[0]
        assert actionable.package_name == "com.instagram.android"
        assert actionable.estimated_data_savings_mb == 25
        assert actionable.severity == 4
        assert actionable.throttle_level == 2
        assert result.estimated_savings.data_mb == 25

    def test_non_finite_numbers_do_not_sink_siblings(self, normalizer, snapshot):
        raw = (
            '{"actionable": ['
            '{"type": "KillApp", "package_name": "com.android.chrome", "description": "Stop Chrome",'
            ' "severity": 1e999, "throttle_level": 1e999, "estimated_battery_savings": NaN},'
            '{"type": "SetStandbyBucket", "package_name": "YouTube", "description": "Restrict YouTube",'
            ' "new_mode": "restricted"}'
            ']}'
        )

        report = normalizer.normalize_with_report(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")

        kill, standby = report.result.actionables
        assert kill.type == ActionableType.KILL_APP
        assert kill.severity == 3
        assert kill.throttle_level is None
        assert kill.estimated_battery_savings_minutes is None
        assert standby.package_name == "com.google.android.youtube"
        assert report.synthesized is False

    @pytest.mark.parametrize("raw_enabled, expected", [
        ('"false"', False),
        ('"No"', False),
        ('"true"', True),
        ("false", False),
        ("null", True),
    ])
    def test_enabled_flag_parsed(self, normalizer, snapshot, raw_enabled, expected):
        raw = (
            '{"actionable": [{"type": "KillApp", "package_name": "com.android.chrome",'
            f' "description": "Stop Chrome", "enabled": {raw_enabled}}}]}}'
        )

        result = normalizer.normalize(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")

        assert result.actionables[0].enabled is expected


# ===========================================================================
# MONITORING
# ===========================================================================

class TestMonitoringPayloads:
    """Alerts: thresholds, resources and the system sentinel."""

    def test_model_alert_with_display_name(self, normalizer, snapshot):
        raw = payload(actionable=[{
            "type": "set_data_alert",
            "package_name": "TikTok",
            "description": "Alert at 500 MB",
            "threshold_mb": "500MB",
        }])

        result = normalizer.normalize(
            QueryCategory.MONITORING, raw, snapshot, "Alert me if TikTok uses more than 500MB"
        )

        alert = result.actionables[0]
        assert alert.type == ActionableType.SET_ALERT
        assert alert.package_name == "com.zhiliaoapp.musically"
        assert alert.parameters == {"resource": "data", "threshold_mb": "500"}

    def test_alert_for_unknown_app_uses_system(self, normalizer, snapshot):
        raw = payload(actionable=[{"type": "SetAlert", "package_name": "Battery", "description": "x", "threshold": "15%"}])

        result = normalizer.normalize(QueryCategory.MONITORING, raw, snapshot, "Alert me at 15% battery")

        assert result.actionables[0].package_name == "system"
        assert result.actionables[0].parameters == {"resource": "battery", "threshold": "15"}

    def test_alert_without_threshold_dropped_then_synthesized(self, normalizer, snapshot):
        raw = payload(actionable=[{"type": "SetAlert", "package_name": "system", "description": "Alert me"}])

        report = normalizer.normalize_with_report(
            QueryCategory.MONITORING, raw, snapshot, "Alert me when battery drops to 15%"
        )

        assert len(report.dropped) == 1
        assert report.synthesized is True
        assert report.result.actionables[0].parameters == {"resource": "battery", "threshold": "15"}

    def test_empty_actionable_list_synthesizes_data_alert(self, normalizer, snapshot):
        raw = payload(insights=[], actionable=[])

        result = normalizer.normalize(
            QueryCategory.MONITORING, raw, snapshot, "Alert me if TikTok uses more than 500MB"
        )

        assert len(result.actionables) == 1
        alert = result.actionables[0]
        assert alert.type == ActionableType.SET_ALERT
        assert alert.package_name == "com.zhiliaoapp.musically"
        assert alert.parameters["threshold_mb"] == "500"
        assert result.insights[0].type == InsightType.MONITORING

    def test_out_of_range_battery_threshold_dropped(self, normalizer, snapshot):
        raw = payload(actionable=[{"type": "SetAlert", "package_name": "system", "description": "x", "threshold": 150}])

        report = normalizer.normalize_with_report(QueryCategory.MONITORING, raw, snapshot, "Alert me at 20% battery")

        assert report.dropped
        assert report.result.actionables[0].parameters["threshold"] == "20"

    def test_infinite_data_threshold_dropped(self, normalizer, snapshot):
        raw = '{"actionable": [{"type": "SetAlert", "package_name": "TikTok", "description": "x", "threshold_mb": 1e999}]}'

        report = normalizer.normalize_with_report(
            QueryCategory.MONITORING, raw, snapshot, "Alert me if TikTok uses more than 500MB"
        )

        assert len(report.dropped) == 1
        assert report.synthesized is True
        assert report.result.actionables[0].parameters["threshold_mb"] == "500"


# ===========================================================================
# SCORES AND SAVINGS
# ===========================================================================

class TestScoresAndSavings:
    """Scores are clamped or derived; savings are given or summed."""

    def test_model_scores_clamped(self, normalizer, snapshot):
        raw = payload(insights=["ok"], batteryScore=130, dataScore=-5, performanceScore="72")

        result = normalizer.normalize(QueryCategory.PREDICTIVE, raw, snapshot, "Will my battery last?")

        assert result.battery_score == 100
        assert result.data_score == 0
        assert result.performance_score == 72

    def test_scores_derived_from_snapshot(self, normalizer, snapshot):
        result = normalizer.normalize(QueryCategory.PREDICTIVE, "Probably yes.", snapshot, "Will my battery last?")

        assert result.battery_score == 64
        assert result.data_score == 36.0
        assert result.performance_score == 50.0

    def test_model_savings_preferred(self, normalizer, snapshot):
        raw = payload(
            actionable=[{"type": "KillApp", "package_name": "com.android.chrome", "description": "Stop Chrome",
                          "estimated_battery_savings": 15}],
            estimatedSavings={"batteryMinutes": 45, "dataMB": 0},
        )

        result = normalizer.normalize(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")

        assert result.estimated_savings.battery_minutes == 45

    def test_savings_summed_when_absent(self, normalizer, snapshot):
        raw = payload(actionable=[
            {"type": "KillApp", "package_name": "com.android.chrome", "description": "a", "estimated_battery_savings": 15},
            {"type": "KillApp", "package_name": "com.spotify.music", "description": "b", "estimated_battery_savings": 5},
        ])

        result = normalizer.normalize(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")

        assert result.estimated_savings.battery_minutes == 20

    def test_non_finite_scores_are_derived(self, normalizer, snapshot):
        raw = '{"insights": ["ok"], "batteryScore": NaN, "dataScore": Infinity, "performanceScore": -Infinity}'

        result = normalizer.normalize(QueryCategory.PREDICTIVE, raw, snapshot, "Will my battery last?")

        assert result.battery_score == 64
        assert result.data_score == 36.0
        assert result.performance_score == 50.0

    def test_non_finite_savings_are_summed(self, normalizer, snapshot):
        raw = (
            '{"actionable": [{"type": "KillApp", "package_name": "com.android.chrome", "description": "a",'
            ' "estimated_battery_savings": 15}],'
            ' "estimatedSavings": {"batteryMinutes": NaN, "dataMB": Infinity}}'
        )

        result = normalizer.normalize(QueryCategory.OPTIMIZATION, raw, snapshot, "Save battery")

        assert result.estimated_savings.battery_minutes == 15
        assert result.estimated_savings.data_mb == 0
