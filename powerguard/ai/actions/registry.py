"""
Actionable Registry - The closed allow-list of device interventions.

Every actionable the pipeline emits must resolve to one of the types
registered here. Model output is untrusted: whatever type string the model
proposes is looked up by canonical name or alias, and anything that does not
resolve is dropped before it reaches the typed domain.

Purpose:
========
1. Single source of truth for the allow-list
2. Alias resolution for the spellings models actually produce
   ("set_standby_bucket", "SET_BATTERY_ALERT", "set_notification")
3. Required-field validation before an Actionable is built
4. Default savings estimates for synthesized actionables

Usage:
======
```python
from powerguard.ai.actions.registry import actionable_registry

definition = actionable_registry.resolve("set_battery_alert")
if definition:
    is_valid, error = definition.validate({"package_name": "system", "threshold": 15})
```

The registry is built once at import and never mutated afterwards, so it can
be shared by concurrent queries without locking.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, FrozenSet, Tuple


logger = logging.getLogger("powerguard.ai.actions.registry")


# ---------------------------------------------------------------------------
# ACTIONABLE TYPES
# ---------------------------------------------------------------------------

class ActionableType(str, Enum):
    """The allow-list. Not extensible by the model."""
    KILL_APP = "KillApp"
    MANAGE_WAKE_LOCKS = "ManageWakeLocks"
    RESTRICT_BACKGROUND_DATA = "RestrictBackgroundData"
    SET_STANDBY_BUCKET = "SetStandbyBucket"
    SET_ALERT = "SetAlert"
    SET_SCHEDULED_ALARM = "SetScheduledAlarm"


class ActionableGroup(str, Enum):
    """Which resource an actionable type acts on."""
    BATTERY = "battery"
    DATA = "data"
    MONITORING = "monitoring"


def _normalize_key(name: str) -> str:
    """'SetStandbyBucket', 'set_standby_bucket' and 'SET-STANDBY BUCKET' all map to 'setstandbybucket'."""
    return re.sub(r"[^a-z0-9]", "", name.lower())


# ---------------------------------------------------------------------------
# ACTIONABLE DEFINITION
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActionableDefinition:
    """
    Definition of one allow-listed actionable type.

    Attributes:
        type: The canonical ActionableType
        group: Resource the intervention acts on
        description: Human-readable description
        required_fields: Wire fields that must be present and non-empty
        aliases: Alternative spellings accepted from the model
        default_battery_minutes: Savings estimate used when none is given
        default_data_mb: Savings estimate used when none is given
    """
    type: ActionableType
    group: ActionableGroup
    description: str
    required_fields: FrozenSet[str] = field(default_factory=lambda: frozenset({"package_name"}))
    aliases: FrozenSet[str] = field(default_factory=frozenset)
    default_battery_minutes: Optional[float] = None
    default_data_mb: Optional[float] = None

    def validate(self, fields: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        """
        Check that an actionable's wire fields satisfy this definition.

        Returns:
            (is_valid, error_message) tuple
        """
        for name in sorted(self.required_fields):
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                return False, f"{self.type.value}: missing required field '{name}'"

        if self.type == ActionableType.SET_ALERT:
            if fields.get("threshold") is None and fields.get("threshold_mb") is None:
                return False, "SetAlert: needs 'threshold' or 'threshold_mb'"

        return True, None


# ---------------------------------------------------------------------------
# ACTIONABLE REGISTRY
# ---------------------------------------------------------------------------

class ActionableRegistry:
    """
    Registry of every actionable type the pipeline may emit.
    """

    def __init__(self):
        self._definitions: Dict[ActionableType, ActionableDefinition] = {}
        self._alias_map: Dict[str, ActionableType] = {}  # normalized key -> type
        self._register_builtin_types()
        logger.debug(f"Actionable registry initialized with {len(self._definitions)} types")

    def _register_builtin_types(self):
        # -----------------------------------------------------------------------
        # BATTERY
        # -----------------------------------------------------------------------
        self._register(ActionableDefinition(
            type=ActionableType.KILL_APP,
            group=ActionableGroup.BATTERY,
            description="Force-stop an app",
            aliases=frozenset({"kill_app", "force_stop", "stop_app"}),
            default_battery_minutes=10.0,
        ))

        self._register(ActionableDefinition(
            type=ActionableType.MANAGE_WAKE_LOCKS,
            group=ActionableGroup.BATTERY,
            description="Release or limit an app's wake locks",
            aliases=frozenset({"manage_wake_locks", "manage_wakelocks", "wake_locks"}),
            default_battery_minutes=10.0,
        ))

        self._register(ActionableDefinition(
            type=ActionableType.SET_STANDBY_BUCKET,
            group=ActionableGroup.BATTERY,
            description="Move an app to a stricter standby bucket",
            aliases=frozenset({"set_standby_bucket", "standby_bucket", "app_standby"}),
            default_battery_minutes=10.0,
        ))

        # -----------------------------------------------------------------------
        # DATA
        # -----------------------------------------------------------------------
        self._register(ActionableDefinition(
            type=ActionableType.RESTRICT_BACKGROUND_DATA,
            group=ActionableGroup.DATA,
            description="Block an app's background network access",
            aliases=frozenset({"restrict_background_data", "restrict_data", "background_data"}),
            default_data_mb=20.0,
        ))

        # -----------------------------------------------------------------------
        # MONITORING
        # -----------------------------------------------------------------------
        self._register(ActionableDefinition(
            type=ActionableType.SET_ALERT,
            group=ActionableGroup.MONITORING,
            description="Notify the user when a battery or data threshold is crossed",
            aliases=frozenset({
                "set_alert", "set_notification", "set_battery_alert", "set_data_alert",
                "battery_alert", "data_alert",
            }),
        ))

        self._register(ActionableDefinition(
            type=ActionableType.SET_SCHEDULED_ALARM,
            group=ActionableGroup.MONITORING,
            description="Schedule a reminder at a fixed time",
            aliases=frozenset({"set_scheduled_alarm", "set_alarm", "schedule_alarm"}),
        ))

    # ---------------------------------------------------------------------------
    # REGISTRY OPERATIONS
    # ---------------------------------------------------------------------------

    def _register(self, definition: ActionableDefinition) -> None:
        self._definitions[definition.type] = definition
        self._alias_map[_normalize_key(definition.type.value)] = definition.type
        for alias in definition.aliases:
            self._alias_map[_normalize_key(alias)] = definition.type

    def resolve(self, name: Any) -> Optional[ActionableDefinition]:
        """
        Resolve a type name or alias to its definition.

        Args:
            name: Type string as received from the model (any casing)

        Returns:
            ActionableDefinition if allow-listed, None otherwise
        """
        if isinstance(name, ActionableType):
            return self._definitions[name]
        if not isinstance(name, str):
            return None
        actionable_type = self._alias_map.get(_normalize_key(name))
        if actionable_type is None:
            return None
        return self._definitions[actionable_type]

    def get(self, actionable_type: ActionableType) -> ActionableDefinition:
        return self._definitions[actionable_type]

    def is_allowed(self, name: Any) -> bool:
        return self.resolve(name) is not None

    def list_types(self, group: Optional[ActionableGroup] = None) -> List[ActionableType]:
        """List allow-listed types, optionally for one group."""
        if group:
            return [d.type for d in self._definitions.values() if d.group == group]
        return list(self._definitions.keys())


# ---------------------------------------------------------------------------
# PROCESS-WIDE ALLOW-LIST
# ---------------------------------------------------------------------------

actionable_registry = ActionableRegistry()
