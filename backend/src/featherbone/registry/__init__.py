"""Featherbone function registry.

Maps (method, name) to async handlers. Triggers are handlers registered
against a feather name with a BEFORE or AFTER phase; plain functions have
no phase and are called directly by name.

Usage:
    from featherbone.registry import FunctionRegistry, TriggerPhase

    registry = FunctionRegistry()

    @registry.function("POST", "Document", trigger=TriggerPhase.BEFORE)
    async def stamp_document(request):
        request.data["createdBy"] = request.user
"""

from featherbone.registry.builtins import register_builtin_functions, register_crud_functions
from featherbone.registry.modules import load_function_modules
from featherbone.registry.registry import FunctionRegistry
from featherbone.registry.types import (
    HandlerFn,
    Method,
    RegisteredFunction,
    TriggerPhase,
)

__all__ = [
    "FunctionRegistry",
    "HandlerFn",
    "Method",
    "RegisteredFunction",
    "TriggerPhase",
    "load_function_modules",
    "register_builtin_functions",
    "register_crud_functions",
]
