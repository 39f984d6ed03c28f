"""
Actions Module - The actionable allow-list.
"""

from powerguard.ai.actions.registry import (
    ActionableType,
    ActionableGroup,
    ActionableDefinition,
    ActionableRegistry,
    actionable_registry,
)

__all__ = [
    "ActionableType",
    "ActionableGroup",
    "ActionableDefinition",
    "ActionableRegistry",
    "actionable_registry",
]
