"""Function registry types for Featherbone.

Defines the data structures shared by the registry and the dispatcher:
- Method: the request verb a function or trigger answers to
- TriggerPhase: whether a trigger runs before or after the CRUD step
- RegisteredFunction: one immutable registry entry
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Method(Enum):
    """Request methods understood by the dispatcher."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def is_mutating(self) -> bool:
        return self is not Method.GET

    @classmethod
    def coerce(cls, value: "Method | str") -> "Method":
        """Accept either a Method or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown method '{value}'") from None


class TriggerPhase(Enum):
    """When a trigger fires relative to the CRUD step."""

    BEFORE = "before"
    AFTER = "after"


# Handler signature: async (Request) -> Any
# Request lives in featherbone.dispatch.types (avoids circular import)
HandlerFn = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class RegisteredFunction:
    """A handler registered against a (method, name) pair.

    Attributes:
        method: Request method the handler answers to
        name: Feather name (for triggers) or function name
        handler: Async callable receiving the Request
        trigger: BEFORE/AFTER for triggers, None for plain functions
    """

    method: Method
    name: str
    handler: HandlerFn
    trigger: TriggerPhase | None = None

    @property
    def is_trigger(self) -> bool:
        return self.trigger is not None
