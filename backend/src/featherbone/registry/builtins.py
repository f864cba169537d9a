"""Framework-provided functions."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

from featherbone.catalog.loader import FeatherCatalog
from featherbone.core.errors import BusinessRuleError, NotFoundError
from featherbone.registry.registry import FunctionRegistry
from featherbone.registry.types import HandlerFn, Method

if TYPE_CHECKING:
    from featherbone.dispatch.dispatcher import Dispatcher

# Function name -> (executor operation, method of the CRUD request)
CRUD_FUNCTIONS = {
    "doInsert": ("insert", Method.POST),
    "doUpdate": ("update", Method.PATCH),
    "doUpsert": ("upsert", Method.PUT),
    "doDelete": ("delete", Method.DELETE),
}


def register_builtin_functions(registry: FunctionRegistry, catalog: FeatherCatalog) -> None:
    """Register catalog and registry introspection functions.

    Called at application startup, before configured modules so that
    applications can override any of them.
    """

    async def get_feather(request: Any) -> dict[str, Any]:
        name = request.data.get("name")
        if not name:
            raise BusinessRuleError("Feather name is required", status_code=400)
        return catalog.get_feather(name).to_dict()

    async def get_catalog(request: Any) -> dict[str, Any]:
        return {name: catalog.get_feather(name).to_dict() for name in catalog.list_feathers()}

    async def registered_functions(request: Any) -> dict[str, list[str]]:
        return registry.registered_functions()

    registry.register(Method.GET, "getFeather", get_feather)
    registry.register(Method.GET, "getCatalog", get_catalog)
    registry.register(Method.GET, "registeredFunctions", registered_functions)


def register_crud_functions(registry: FunctionRegistry, dispatcher: Dispatcher) -> None:
    """Register POST doInsert, doUpdate, doUpsert and doDelete.

    Each runs one CRUD step against the feather named in ``data["name"]``,
    using ``data["id"]`` and ``data["data"]``, on the calling request's
    connection. No triggers fire. Being POST functions, they are wrapped in
    a transaction like any other mutating function.
    """
    for function_name, (operation, method) in CRUD_FUNCTIONS.items():
        registry.register(
            Method.POST, function_name, _crud_function(dispatcher, operation, method)
        )


def _crud_function(dispatcher: Dispatcher, operation: str, method: Method) -> HandlerFn:
    async def handler(request: Any) -> Any:
        name = request.data.get("name")
        if not name:
            raise BusinessRuleError("Feather name is required", status_code=400)
        if not dispatcher.catalog.has_feather(name):
            raise NotFoundError(f"Feather '{name}' not found")

        crud_request = replace(
            request,
            method=method,
            name=name,
            id=request.data.get("id"),
            data=dict(request.data.get("data") or {}),
            filter=None,
            response=None,
            nested=None,
        )
        return await dispatcher.execute(request.connection, crud_request, operation)

    return handler
