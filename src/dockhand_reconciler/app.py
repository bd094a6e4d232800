"""Root Typer app — global options and command group registration."""

from __future__ import annotations

from typing import Optional

import typer

from dockhand_reconciler import __version__
from dockhand_reconciler.commands import config_cmd, container, gateway, resource, stack
from dockhand_reconciler.utils.logging_config import setup_logging

app = typer.Typer(
    name="dockhand",
    help="Reconcile Docker containers, stacks, networks, volumes and images through Dockhand.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    if value:
        print(f"dockhand {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="DEBUG, INFO, WARNING or ERROR (default: $DOCKHAND_LOG_LEVEL or WARNING)."
    ),
) -> None:
    """Keep Docker objects managed by Dockhand matching a manifest."""
    setup_logging(log_level)


# Register command groups
app.add_typer(config_cmd.app, name="config")
app.add_typer(gateway.app, name="gateway")
app.add_typer(resource.app, name="resource")
app.add_typer(container.app, name="container")
app.add_typer(stack.app, name="stack")


def main() -> None:
    app()
