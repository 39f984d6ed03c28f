"""
Effectors Module - Applying actionables to a device.
"""

from powerguard.effectors.base import (
    ActionHandler,
    ActionableDispatcher,
    Effector,
    LoggingEffector,
)

__all__ = [
    "ActionHandler",
    "ActionableDispatcher",
    "Effector",
    "LoggingEffector",
]
