"""Compose stack commands."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from dockhand_reconciler.client.errors import error_handler
from dockhand_reconciler.commands._common import CookieOpt, EnvOpt, ProfileOpt, UrlOpt, make_client
from dockhand_reconciler.models import Kind

app = typer.Typer(name="stack", help="Start and stop compose stacks.")
console = Console()

IdArg = Annotated[str, typer.Argument(help="Stack id")]


@app.command()
@error_handler
def start(stack_id: IdArg, env: EnvOpt, profile: ProfileOpt = None, url: UrlOpt = None, cookie: CookieOpt = None) -> None:
    """Bring a compose stack up."""
    with make_client(profile, url, cookie) as client:
        client.action(Kind.COMPOSE_STACK, env, stack_id, "start")
    console.print(f"[green]Stack '{stack_id}' started.[/]")


@app.command()
@error_handler
def stop(stack_id: IdArg, env: EnvOpt, profile: ProfileOpt = None, url: UrlOpt = None, cookie: CookieOpt = None) -> None:
    """Bring a compose stack down."""
    with make_client(profile, url, cookie) as client:
        client.action(Kind.COMPOSE_STACK, env, stack_id, "stop")
    console.print(f"[green]Stack '{stack_id}' stopped.[/]")
