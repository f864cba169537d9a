"""Function registry for Featherbone.

Provides registration and lookup for functions and triggers keyed by
(method, name). The registry is an explicit object handed to the Dispatcher.
"""

import logging
from collections.abc import Callable

from featherbone.registry.types import (
    HandlerFn,
    Method,
    RegisteredFunction,
    TriggerPhase,
)

logger = logging.getLogger(__name__)


class FunctionRegistry:
    """Registry of request handlers.

    Registration is expected at application startup only; the registry is
    read-mostly afterwards and is not safe to mutate under live traffic.

    Example:
        registry = FunctionRegistry()

        @registry.function("POST", "Document", trigger=TriggerPhase.BEFORE)
        async def stamp_document(request):
            request.data["createdBy"] = request.user
    """

    def __init__(self) -> None:
        self._functions: dict[Method, dict[str, RegisteredFunction]] = {
            method: {} for method in Method
        }

    def register(
        self,
        method: Method | str,
        name: str,
        handler: HandlerFn,
        trigger: TriggerPhase | None = None,
    ) -> None:
        """Register a handler for (method, name).

        Re-registering the same key replaces the previous handler (last
        write wins), which allows overriding built-ins at startup.

        Args:
            method: Request method the handler answers to
            name: Feather name for triggers, otherwise the function name
            handler: Async function receiving the Request
            trigger: TriggerPhase.BEFORE / AFTER for triggers
        """
        method = Method.coerce(method)
        if name in self._functions[method]:
            logger.warning("Replacing registered function %s %s", method.value, name)
        self._functions[method][name] = RegisteredFunction(
            method=method,
            name=name,
            handler=handler,
            trigger=trigger,
        )

    def lookup(self, method: Method | str, name: str) -> HandlerFn | None:
        """Return the handler registered for (method, name), or None."""
        entry = self._functions[Method.coerce(method)].get(name)
        return entry.handler if entry else None

    def lookup_for_phase(
        self, method: Method | str, name: str, phase: TriggerPhase
    ) -> HandlerFn | None:
        """Return the handler only if it was registered for ``phase``.

        An entry registered for the other phase, or as a plain function,
        counts as not found.
        """
        entry = self._functions[Method.coerce(method)].get(name)
        if entry is None or entry.trigger is not phase:
            return None
        return entry.handler

    def is_registered(self, method: Method | str, name: str) -> bool:
        return self.lookup(method, name) is not None

    def list_registered(self) -> dict[Method, dict[str, RegisteredFunction]]:
        """Full registry contents, for diagnostics."""
        return {method: dict(entries) for method, entries in self._functions.items()}

    def registered_functions(self) -> dict[str, list[str]]:
        """Registered names grouped by method value."""
        return {
            method.value: sorted(entries)
            for method, entries in self._functions.items()
        }

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        for entries in self._functions.values():
            entries.clear()

    def function(
        self,
        method: Method | str,
        name: str,
        trigger: TriggerPhase | None = None,
    ) -> Callable[[HandlerFn], HandlerFn]:
        """Decorator form of register().

        Usage:
            @registry.function("GET", "getTotals")
            async def get_totals(request):
                ...
        """

        def decorator(fn: HandlerFn) -> HandlerFn:
            self.register(method, name, fn, trigger)
            return fn

        return decorator

    # Outward-facing aliases used by the public API layer
    register_function = register
