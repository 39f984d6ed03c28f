"""
Exceptions raised inside the query pipeline.

Only ModelClientError and TelemetryError are expected at runtime; both are
recovered by the orchestrator. InvalidCategoryError signals corrupted internal
state and is never produced by untrusted input.
"""

from typing import Optional


class PowerGuardError(Exception):
    """Base exception for all pipeline errors."""
    pass


class ModelClientError(PowerGuardError):
    """Raised when the language-model backend fails to produce a completion."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class ModelTimeoutError(ModelClientError):
    """Raised when a model call exceeds its time budget."""
    pass


class PayloadParseError(PowerGuardError):
    """Raised when a model payload contains no parseable JSON object."""
    pass


class InvalidCategoryError(PowerGuardError):
    """Raised when a stage receives a category it has no contract for."""

    def __init__(self, category):
        super().__init__(f"Invalid query category: {category!r}")
        self.category = category


class TelemetryError(PowerGuardError):
    """Raised by telemetry sources when a snapshot cannot be read."""
    pass
