"""
Effector contract and the reference dispatcher.

The component that actually applies actionables on a device lives outside
this package. What it must honour:

- execute() returns one boolean per actionable id
- one failing actionable never aborts its siblings
- applying the same actionable id twice has no second effect

Design Pattern: Strategy
========================
- Effector: abstract base, one execute() per batch
- ActionableDispatcher: routes each actionable to a per-type handler
- LoggingEffector: in-memory dispatcher that only records what it was asked
  to do (tests, demos, dry runs)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set
from uuid import UUID

from powerguard.ai.actions.registry import ActionableRegistry, ActionableType, actionable_registry
from powerguard.ai.schemas.analysis import Actionable

logger = logging.getLogger("powerguard.effectors")


ActionHandler = Callable[[Actionable], Awaitable[bool]]


class Effector(ABC):
    """
    Applies actionables to a device.

    Implementations return a map from actionable id to whether it was
    applied. Every id in the input appears in the output.
    """

    @abstractmethod
    async def execute(self, actionables: List[Actionable]) -> Dict[UUID, bool]:
        pass


class ActionableDispatcher(Effector):
    """
    Effector that hands each actionable to the handler for its type.

    Items outside the allow-list, or with no handler, are reported False
    without being applied. A handler that raises counts as False and does
    not stop the rest of the batch. Successfully applied ids are remembered;
    passing them again returns True without calling the handler. Concurrent
    execute() calls carrying the same id share one handler call.

    Applied ids are remembered for the lifetime of the dispatcher and are
    never evicted: create one dispatcher per device session.

    Usage:
        dispatcher = ActionableDispatcher({
            ActionableType.KILL_APP: kill_app,
            ActionableType.SET_ALERT: register_alert,
        })
        results = await dispatcher.execute(result.actionables)
    """

    def __init__(
        self,
        handlers: Dict[ActionableType, ActionHandler],
        registry: ActionableRegistry = actionable_registry,
    ):
        self.handlers = dict(handlers)
        self.registry = registry
        self._applied: Set[UUID] = set()
        self._in_flight: Dict[UUID, "asyncio.Future[bool]"] = {}

    @property
    def applied_ids(self) -> Set[UUID]:
        return set(self._applied)

    async def execute(self, actionables: List[Actionable]) -> Dict[UUID, bool]:
        results: Dict[UUID, bool] = {}
        for actionable in actionables:
            results[actionable.id] = await self._apply(actionable)

        applied = sum(1 for ok in results.values() if ok)
        logger.info(f"Executed {len(results)} actionables: {applied} applied, {len(results) - applied} failed")
        return results

    async def _apply(self, actionable: Actionable) -> bool:
        if actionable.id in self._applied:
            logger.debug(f"Actionable {actionable.id} already applied, skipping")
            return True

        task = self._in_flight.get(actionable.id)
        if task is None:
            task = asyncio.ensure_future(self._run(actionable))
            self._in_flight[actionable.id] = task
            task.add_done_callback(lambda _: self._in_flight.pop(actionable.id, None))
        else:
            logger.debug(f"Actionable {actionable.id} already in flight, waiting for it")
        return await asyncio.shield(task)

    async def _run(self, actionable: Actionable) -> bool:
        definition = self.registry.resolve(actionable.type)
        if definition is None:
            logger.warning(f"Refusing actionable {actionable.id}: type {actionable.type!r} is not allow-listed")
            return False

        handler = self.handlers.get(definition.type)
        if handler is None:
            logger.warning(f"No handler for {definition.type.value}, actionable {actionable.id} not applied")
            return False

        try:
            ok = bool(await handler(actionable))
        except Exception as e:
            logger.error(f"{definition.type.value} failed for {actionable.package_name}: {e}")
            return False

        if ok:
            self._applied.add(actionable.id)
        return ok


class LoggingEffector(ActionableDispatcher):
    """
    Dispatcher whose handlers only log and record.

    failing_packages makes every actionable for those packages report
    False, which is handy for exercising partial failure.
    """

    def __init__(
        self,
        failing_packages: Optional[Iterable[str]] = None,
        registry: ActionableRegistry = actionable_registry,
    ):
        self.failing_packages = set(failing_packages or ())
        self.executed: List[Actionable] = []
        super().__init__(
            {actionable_type: self._record for actionable_type in registry.list_types()},
            registry=registry,
        )

    async def _record(self, actionable: Actionable) -> bool:
        if actionable.package_name in self.failing_packages:
            logger.info(f"[dry-run] {actionable.type.value} on {actionable.package_name}: simulated failure")
            return False
        self.executed.append(actionable)
        logger.info(
            f"[dry-run] {actionable.type.value} on {actionable.package_name} "
            f"parameters={actionable.parameters}"
        )
        return True
