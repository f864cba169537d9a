"""Catalog CLI commands - list and show feathers."""

from pathlib import Path

import click

from featherbone.catalog.loader import FeatherCatalog, load_catalog
from featherbone.core.errors import FeatherboneError
from featherbone.core.settings import Settings


def _load(catalog_path: Path | None) -> FeatherCatalog:
    path = catalog_path or Settings.from_env().catalog_path
    if not path.exists():
        click.echo(f"Error: Catalog directory not found at {path}", err=True)
        raise SystemExit(1)
    try:
        return load_catalog(path)
    except (ValueError, FeatherboneError) as e:
        click.echo(click.style(f"Invalid catalog: {e}", fg="red"), err=True)
        raise SystemExit(1) from e


@click.group()
def catalog():
    """Feather catalog commands."""
    pass


_path_option = click.option(
    "--path",
    "catalog_path",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Catalog directory (defaults to FEATHERBONE_CATALOG_PATH or ./catalog).",
)


@catalog.command("list")
@_path_option
def list_feathers(catalog_path: Path | None):
    """List feathers with their parent."""
    loaded = _load(catalog_path)
    for name in loaded.list_feathers():
        feather = loaded.get_feather(name)
        parent = "" if feather.is_root else f" <- {feather.parent_name}"
        click.echo(f"{name}{parent}")


@catalog.command()
@click.argument("name")
@_path_option
def show(name: str, catalog_path: Path | None):
    """Show a feather's inheritance chain and resolved properties."""
    loaded = _load(catalog_path)
    if not loaded.has_feather(name):
        click.echo(f"Error: Feather '{name}' not found", err=True)
        raise SystemExit(1)

    click.echo(" -> ".join(loaded.ancestry(name)))
    for prop_name, prop in loaded.properties(name).items():
        prop_type = f"relation({prop.relation})" if prop.relation else prop.type
        click.echo(f"  {prop_name}: {prop_type}")
