"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- A realistic device snapshot (six apps, battery at 64%)
- A mocked language-model provider (AsyncMock, no network calls)
- Builders for classifier and recommendation replies
"""

import json
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from powerguard.ai.providers.base import AIProvider, AIResponse, ProviderType
from powerguard.ai.monitoring.monitor import PipelineMonitor
from powerguard.telemetry.schemas import BYTES_PER_MB, AppUsage, BatteryState, DeviceSnapshot
from powerguard.telemetry.source import StaticTelemetrySource


# ---------------------------------------------------------------------------
# SNAPSHOT FIXTURES
# ---------------------------------------------------------------------------
# Data totals: YouTube 450 MB, Chrome 120 MB, Instagram 87 MB, Spotify 45 MB,
# TikTok 30 MB, WhatsApp 10 MB.
# Battery: YouTube 18.5, WhatsApp 16, TikTok 15, Instagram 12, Chrome 9, Spotify 4.

def make_app(package: str, name: str, battery: float, background_mb: int, foreground_mb: int) -> AppUsage:
    return AppUsage(
        package_name=package,
        app_name=name,
        battery_usage_percent=battery,
        background_bytes=background_mb * BYTES_PER_MB,
        foreground_bytes=foreground_mb * BYTES_PER_MB,
    )


@pytest.fixture
def snapshot() -> DeviceSnapshot:
    return DeviceSnapshot(
        battery=BatteryState(level=64, is_charging=False, temperature=31.5),
        apps=[
            make_app("com.google.android.youtube", "YouTube", 18.5, 120, 330),
            make_app("com.android.chrome", "Chrome", 9.0, 40, 80),
            make_app("com.instagram.android", "Instagram", 12.0, 60, 27),
            make_app("com.spotify.music", "Spotify", 4.0, 35, 10),
            make_app("com.whatsapp", "WhatsApp", 16.0, 4, 6),
            make_app("com.zhiliaoapp.musically", "TikTok", 15.0, 10, 20),
        ],
        network_type="mobile",
        data_plan_mb=5000,
        data_used_mb=3200,
    )


@pytest.fixture
def empty_snapshot() -> DeviceSnapshot:
    return DeviceSnapshot.empty()


@pytest.fixture
def telemetry(snapshot: DeviceSnapshot) -> StaticTelemetrySource:
    return StaticTelemetrySource(snapshot)


@pytest.fixture
def monitor() -> PipelineMonitor:
    return PipelineMonitor()


# ---------------------------------------------------------------------------
# PROVIDER FIXTURES
# ---------------------------------------------------------------------------

def ok_response(content: str, provider: ProviderType = ProviderType.GEMINI) -> AIResponse:
    return AIResponse(content=content, provider=provider, model="test-model")


def failed_response(error: str = "Service unavailable") -> AIResponse:
    return AIResponse(
        content="",
        provider=ProviderType.GEMINI,
        model="test-model",
        success=False,
        error=error,
    )


def classification_json(category: int, params: Optional[Dict[str, Any]] = None) -> str:
    return json.dumps({"category": category, "extracted_params": params or {}})


@pytest.fixture
def mock_provider() -> MagicMock:
    """
    Provider double with the async surface mocked.

    Defaults: classification fails (keyword rules take over) and
    complete() returns an empty JSON object. Tests override per case.
    """
    provider = MagicMock(spec=AIProvider)
    provider.provider_type = ProviderType.GEMINI
    provider.model = "test-model"
    provider.generate = AsyncMock(return_value=ok_response("{}"))
    provider.generate_json = AsyncMock(return_value=failed_response())
    provider.complete = AsyncMock(return_value="{}")
    return provider
