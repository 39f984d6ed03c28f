"""
Telemetry Sources - Contract for reading device snapshots.

The real collector queries the OS and can be slow, so the contract is async:
the orchestrator awaits it without blocking the caller's thread.

Design Pattern: Strategy Pattern
================================
TelemetrySource is the interface; StaticTelemetrySource serves a fixed
snapshot (tests, demos, replaying a captured device state).
"""

import logging
from abc import ABC, abstractmethod

from powerguard.telemetry.schemas import DeviceSnapshot

logger = logging.getLogger("powerguard.telemetry")


class TelemetrySource(ABC):
    """
    Abstract base class for telemetry providers.

    Implementations raise TelemetryError when a snapshot cannot be read;
    the orchestrator decides what to do about it.
    """

    @abstractmethod
    async def get_snapshot(self) -> DeviceSnapshot:
        """Return the current device resource snapshot."""
        pass


class StaticTelemetrySource(TelemetrySource):
    """Telemetry source that always returns the same snapshot."""

    def __init__(self, snapshot: DeviceSnapshot):
        self._snapshot = snapshot
        logger.debug(f"Static telemetry source with {len(snapshot.apps)} apps")

    async def get_snapshot(self) -> DeviceSnapshot:
        return self._snapshot
