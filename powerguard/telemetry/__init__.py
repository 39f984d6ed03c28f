"""
Telemetry Module - Device snapshot types and the source contract.

The collector itself is external; this package only defines what the
pipeline reads.
"""

from powerguard.telemetry.schemas import (
    BYTES_PER_MB,
    AppUsage,
    BatteryState,
    DeviceSnapshot,
)
from powerguard.telemetry.source import StaticTelemetrySource, TelemetrySource

__all__ = [
    "BYTES_PER_MB",
    "AppUsage",
    "BatteryState",
    "DeviceSnapshot",
    "StaticTelemetrySource",
    "TelemetrySource",
]
