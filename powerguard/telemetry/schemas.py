"""
Telemetry Schemas - The device snapshot consumed by the pipeline.

The collector that fills these models lives outside this package. The
pipeline only ever reads a snapshot; it never mutates one.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


BYTES_PER_MB = 1024 * 1024


class BatteryState(BaseModel):
    """Battery level and charging state at snapshot time."""
    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=0, le=100, description="Battery percentage")
    is_charging: bool = False
    temperature: Optional[float] = Field(default=None, description="Celsius")


class AppUsage(BaseModel):
    """
    Per-app resource usage over the collection window.

    Example:
        AppUsage(
            package_name="com.google.android.youtube",
            app_name="YouTube",
            battery_usage_percent=18.5,
            background_bytes=120 * BYTES_PER_MB,
            foreground_bytes=330 * BYTES_PER_MB,
        )
    """
    model_config = ConfigDict(frozen=True)

    package_name: str
    app_name: str
    battery_usage_percent: float = Field(default=0.0, ge=0.0)
    background_bytes: int = Field(default=0, ge=0)
    foreground_bytes: int = Field(default=0, ge=0)

    @property
    def total_bytes(self) -> int:
        return self.background_bytes + self.foreground_bytes

    @property
    def total_mb(self) -> float:
        return self.total_bytes / BYTES_PER_MB

    @property
    def background_mb(self) -> float:
        return self.background_bytes / BYTES_PER_MB


class DeviceSnapshot(BaseModel):
    """
    Current device resource snapshot.

    May be stale by design; callers accept bounded freshness.
    data_plan_mb / data_used_mb are optional and only feed predictive answers.
    """
    model_config = ConfigDict(frozen=True)

    battery: BatteryState
    apps: List[AppUsage] = Field(default_factory=list)
    network_type: str = "unknown"
    data_plan_mb: Optional[float] = None
    data_used_mb: Optional[float] = None

    @classmethod
    def empty(cls) -> "DeviceSnapshot":
        """Snapshot used when telemetry is unavailable."""
        return cls(battery=BatteryState(level=0))

    @property
    def data_remaining_mb(self) -> Optional[float]:
        if self.data_plan_mb is None or self.data_used_mb is None:
            return None
        return max(self.data_plan_mb - self.data_used_mb, 0.0)

    def top_battery_apps(self, limit: int) -> List[AppUsage]:
        return sorted(self.apps, key=lambda a: a.battery_usage_percent, reverse=True)[:limit]

    def top_data_apps(self, limit: int) -> List[AppUsage]:
        return sorted(self.apps, key=lambda a: a.total_bytes, reverse=True)[:limit]

    def find_app(self, name_or_package: str) -> Optional[AppUsage]:
        """Look up an app by package name or case-insensitive display name."""
        needle = name_or_package.strip().lower()
        if not needle:
            return None
        for app in self.apps:
            if app.package_name.lower() == needle or app.app_name.lower() == needle:
                return app
        return None
