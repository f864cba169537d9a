"""Function registry CLI commands."""

import click

from featherbone.catalog.loader import load_catalog
from featherbone.core.bootstrap import build_registry
from featherbone.core.settings import Settings
from featherbone.dispatch.dispatcher import Dispatcher
from featherbone.persistence.connection import ConnectionManager
from featherbone.persistence.executor import SqlCrudExecutor
from featherbone.registry.registry import FunctionRegistry
from featherbone.registry.types import Method


@click.group()
def functions():
    """Registered function commands."""
    pass


@functions.command("list")
@click.option(
    "--module",
    "modules",
    multiple=True,
    help="Function module to load (repeatable). Adds to FEATHERBONE_FUNCTION_MODULES.",
)
def list_functions(modules: tuple[str, ...]):
    """List built-in and configured functions and triggers by method."""
    settings = Settings.from_env()
    settings.function_modules.extend(modules)
    catalog = load_catalog(settings.catalog_path)
    # Listing only; no connection is ever acquired
    dispatcher = Dispatcher(
        catalog, FunctionRegistry(), ConnectionManager(None), SqlCrudExecutor(catalog)
    )
    registry = build_registry(settings, catalog, dispatcher)

    entries = registry.list_registered()
    for method in Method:
        names = sorted(entries[method])
        if not names:
            continue
        click.echo(click.style(method.value, bold=True))
        for name in names:
            entry = entries[method][name]
            suffix = f" [{entry.trigger.value}]" if entry.trigger else ""
            click.echo(f"  {name}{suffix}")
