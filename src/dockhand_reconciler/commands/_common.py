"""Shared helpers for CLI commands — client factory and option aliases."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer

from dockhand_reconciler.client.gateway import GatewayClient
from dockhand_reconciler.config.constants import DEFAULT_STATE_FILE, ENV_STATE_FILE
from dockhand_reconciler.config.manager import ConfigManager
from dockhand_reconciler.reconcile.state import StateStore

# Shared Typer option type aliases
ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Gateway profile"),
]
UrlOpt = Annotated[
    str | None,
    typer.Option("--url", help="Gateway URL override"),
]
CookieOpt = Annotated[
    str | None,
    typer.Option("--cookie", help="Session cookie override"),
]
FormatOpt = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format: table, json, yaml or csv"),
]
StateOpt = Annotated[
    Path | None,
    typer.Option("--state", "-s", help=f"State file (default: ${ENV_STATE_FILE} or {DEFAULT_STATE_FILE})"),
]
EnvOpt = Annotated[
    str,
    typer.Option("--env", "-e", help="Environment id"),
]


def make_client(
    profile: str | None,
    url: str | None,
    cookie: str | None,
) -> GatewayClient:
    """Create a GatewayClient from CLI options, env vars, or config profile."""
    mgr = ConfigManager()
    resolved = mgr.resolve_gateway(profile_name=profile, url=url, cookie=cookie)
    return GatewayClient(resolved)


def open_state(path: Path | None) -> StateStore:
    """State store at *path*, ``$DOCKHAND_STATE_FILE``, or the working-directory default."""
    if path is None:
        path = Path(os.environ.get(ENV_STATE_FILE) or DEFAULT_STATE_FILE)
    return StateStore(path)
