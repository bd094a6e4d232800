"""Container commands — lifecycle verbs on a running container."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from dockhand_reconciler.client.errors import error_handler
from dockhand_reconciler.commands._common import CookieOpt, EnvOpt, ProfileOpt, UrlOpt, make_client
from dockhand_reconciler.models import Kind

app = typer.Typer(name="container", help="Start, stop, restart, pause and unpause containers.")
console = Console()

IdArg = Annotated[str, typer.Argument(help="Container id")]


def _run(verb: str, container_id: str, env: str, profile: str | None, url: str | None, cookie: str | None) -> None:
    with make_client(profile, url, cookie) as client:
        client.action(Kind.CONTAINER, env, container_id, verb)
    console.print(f"[green]Container '{container_id}': {verb} sent.[/]")


@app.command()
@error_handler
def start(container_id: IdArg, env: EnvOpt, profile: ProfileOpt = None, url: UrlOpt = None, cookie: CookieOpt = None) -> None:
    """Start a container."""
    _run("start", container_id, env, profile, url, cookie)


@app.command()
@error_handler
def stop(container_id: IdArg, env: EnvOpt, profile: ProfileOpt = None, url: UrlOpt = None, cookie: CookieOpt = None) -> None:
    """Stop a container."""
    _run("stop", container_id, env, profile, url, cookie)


@app.command()
@error_handler
def restart(container_id: IdArg, env: EnvOpt, profile: ProfileOpt = None, url: UrlOpt = None, cookie: CookieOpt = None) -> None:
    """Restart a container."""
    _run("restart", container_id, env, profile, url, cookie)


@app.command()
@error_handler
def pause(container_id: IdArg, env: EnvOpt, profile: ProfileOpt = None, url: UrlOpt = None, cookie: CookieOpt = None) -> None:
    """Pause a container."""
    _run("pause", container_id, env, profile, url, cookie)


@app.command()
@error_handler
def unpause(container_id: IdArg, env: EnvOpt, profile: ProfileOpt = None, url: UrlOpt = None, cookie: CookieOpt = None) -> None:
    """Unpause a container."""
    _run("unpause", container_id, env, profile, url, cookie)
