"""Gateway commands — liveness."""

from __future__ import annotations

import typer
from rich.console import Console

from dockhand_reconciler.client.errors import error_handler
from dockhand_reconciler.commands._common import CookieOpt, ProfileOpt, UrlOpt, make_client

app = typer.Typer(name="gateway", help="Gateway health.")
console = Console()


@app.command()
@error_handler
def health(
    profile: ProfileOpt = None,
    url: UrlOpt = None,
    cookie: CookieOpt = None,
) -> None:
    """Check that the gateway answers its health endpoint."""
    with make_client(profile, url, cookie) as client:
        if client.health_check():
            console.print(f"[green]Gateway at {client.profile.url} is healthy.[/]")
        else:
            console.print(f"[red]Gateway at {client.profile.url} is unhealthy.[/]")
            raise typer.Exit(1)
