"""Featherbone CLI entry point."""

import os

import click


@click.group()
def cli():
    """Featherbone - object relational request framework CLI."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option(
    "--port",
    default=lambda: int(os.environ.get("FEATHERBONE_PORT", "8000")),
    show_default="8000",
    type=int,
)
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
def serve(host: str, port: int, reload: bool):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "featherbone.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=os.environ.get("FEATHERBONE_LOG_LEVEL", "info").lower(),
    )


# Register subcommand groups
from featherbone.cli.catalog_cmd import catalog  # noqa: E402
from featherbone.cli.functions_cmd import functions  # noqa: E402

cli.add_command(catalog)
cli.add_command(functions)
