"""Initialize Featherbone services.

Shared by the API lifespan and the CLI: returns a services container
instead of setting module globals.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from featherbone.catalog.loader import FeatherCatalog, load_catalog
from featherbone.core.settings import Settings
from featherbone.dispatch.dispatcher import Dispatcher
from featherbone.persistence.config import create_engine
from featherbone.persistence.connection import ConnectionManager
from featherbone.persistence.executor import SqlCrudExecutor
from featherbone.registry.builtins import register_builtin_functions, register_crud_functions
from featherbone.registry.modules import load_function_modules
from featherbone.registry.registry import FunctionRegistry

logger = logging.getLogger(__name__)


@dataclass
class FeatherboneServices:
    """Container for all initialized services."""

    settings: Settings
    catalog: FeatherCatalog
    registry: FunctionRegistry
    connections: ConnectionManager
    executor: SqlCrudExecutor
    dispatcher: Dispatcher


def build_registry(
    settings: Settings,
    catalog: FeatherCatalog,
    dispatcher: Dispatcher | None = None,
) -> FunctionRegistry:
    """Built-ins first, then configured modules (which may override them).

    The CRUD functions run on a dispatcher; they are registered into its
    registry when one is given.
    """
    registry = dispatcher.registry if dispatcher else FunctionRegistry()
    register_builtin_functions(registry, catalog)
    if dispatcher:
        register_crud_functions(registry, dispatcher)
    load_function_modules(registry, settings.function_modules)
    return registry


def initialize_services(settings: Settings | None = None) -> FeatherboneServices:
    """Load the catalog, create the pool and populate the registry."""
    settings = settings or Settings.from_env()

    catalog = load_catalog(settings.catalog_path)
    logger.info(
        "Loaded %d feathers from %s", len(catalog.list_feathers()), settings.catalog_path
    )

    if settings.database.is_sqlite:
        sqlite_path = settings.database.url.replace("sqlite:///", "")
        if sqlite_path and sqlite_path != ":memory:":
            Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    connections = ConnectionManager(create_engine(settings.database))
    executor = SqlCrudExecutor(catalog)
    dispatcher = Dispatcher(catalog, FunctionRegistry(), connections, executor)
    registry = build_registry(settings, catalog, dispatcher)

    return FeatherboneServices(
        settings=settings,
        catalog=catalog,
        registry=registry,
        connections=connections,
        executor=executor,
        dispatcher=dispatcher,
    )


async def initialize_storage(services: FeatherboneServices) -> None:
    """Create a table for every feather that doesn't have one yet."""
    ctx = await services.connections.acquire()
    try:
        async with ctx.connection.begin():
            await services.executor.initialize(ctx, services.catalog.list_feathers())
    finally:
        await services.connections.release(ctx)
