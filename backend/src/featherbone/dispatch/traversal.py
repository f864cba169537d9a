"""Trigger traversal over the feather inheritance chain.

Walks from the requested feather up to ``Object``, invoking the trigger
registered for (method, feather, phase) at each level that has one. Both
phases walk in the same direction, most specific feather first; AFTER
triggers are not reversed.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from featherbone.catalog.loader import FeatherCatalog
from featherbone.registry.registry import FunctionRegistry
from featherbone.registry.types import HandlerFn, Method, TriggerPhase

logger = logging.getLogger(__name__)

# Runs one trigger against the request; supplied by the dispatcher so the
# trigger sees the shared connection and the nested-call guard
InvokeFn = Callable[[HandlerFn, Any], Awaitable[Any]]


class TriggerTraversal:
    """Finds and fires triggers for one phase of a request."""

    def __init__(self, catalog: FeatherCatalog, registry: FunctionRegistry):
        self.catalog = catalog
        self.registry = registry

    def plan(
        self, method: Method, name: str, phase: TriggerPhase
    ) -> list[tuple[str, HandlerFn]]:
        """(feather, trigger) pairs in firing order for one phase.

        Feathers without a trigger for this phase are skipped, so an
        inherited trigger appears once, at the level that registered it.
        """
        steps = []
        for feather_name in self.catalog.ancestry(name):
            handler = self.registry.lookup_for_phase(method, feather_name, phase)
            if handler is not None:
                steps.append((feather_name, handler))
        return steps

    async def run(self, phase: TriggerPhase, request: Any, invoke: InvokeFn) -> None:
        """Fire every trigger for ``phase`` in descendant-to-ancestor order.

        Triggers run strictly one after another. A failing trigger stops
        the walk and its exception propagates to the caller.
        """
        for feather_name, handler in self.plan(request.method, request.name, phase):
            logger.debug(
                "Firing %s %s trigger of %s for %s",
                phase.value,
                request.method.value,
                feather_name,
                request.name,
            )
            await invoke(handler, request)
