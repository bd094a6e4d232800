"""Config commands — manage gateway profiles."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.prompt import Confirm

from dockhand_reconciler.client.errors import error_handler
from dockhand_reconciler.client.gateway import GatewayClient
from dockhand_reconciler.config.manager import ConfigManager
from dockhand_reconciler.config.models import GatewayProfile
from dockhand_reconciler.output.formatter import output

app = typer.Typer(name="config", help="Manage gateway profiles and CLI configuration.")
console = Console()


def _get_manager() -> ConfigManager:
    return ConfigManager()


def _mask(cookie: str) -> str:
    return cookie[:6] + "..." if len(cookie) > 12 else "***"


@app.command()
@error_handler
def add(
    name: Annotated[str, typer.Argument(help="Profile name")],
    url: Annotated[str, typer.Option("--url", "-u", help="Dockhand URL")],
    cookie: Annotated[Optional[str], typer.Option("--cookie", "-c", help="Session cookie")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Request timeout in seconds")] = None,
    no_verify_ssl: Annotated[bool, typer.Option("--no-verify-ssl", help="Disable SSL verification")] = False,
    set_default: Annotated[bool, typer.Option("--default", help="Set as default profile")] = False,
) -> None:
    """Add a gateway profile."""
    mgr = _get_manager()
    fields = {"timeout": timeout} if timeout is not None else {}
    profile = GatewayProfile(
        name=name,
        url=url.rstrip("/"),
        cookie=cookie,
        verify_ssl=not no_verify_ssl,
        **fields,
    )
    mgr.add_profile(profile)
    if set_default:
        mgr.set_default(name)
    console.print(f"[green]Profile '{name}' added.[/]")


@app.command("list")
@error_handler
def list_profiles(
    fmt: Annotated[str, typer.Option("--format", "-f", help="Output format")] = "table",
) -> None:
    """List all configured profiles."""
    mgr = _get_manager()
    profiles = mgr.config.profiles
    if not profiles:
        console.print("[yellow]No profiles configured. Run 'dockhand config add' to get started.[/]")
        return

    default = mgr.config.default_profile
    columns = ["Name", "URL", "Cookie", "Default"]
    rows = []
    for name, p in profiles.items():
        rows.append([name, p.url, "set" if p.auth_configured else "", "*" if name == default else ""])

    output(
        {"profiles": [p.model_dump(exclude={"cookie"}, exclude_none=True) for p in profiles.values()]},
        fmt,
        columns=columns,
        rows=rows,
        title="Gateway Profiles",
    )


@app.command()
@error_handler
def show(
    name: Annotated[str, typer.Argument(help="Profile name")],
    fmt: Annotated[str, typer.Option("--format", "-f", help="Output format")] = "table",
) -> None:
    """Show profile details."""
    mgr = _get_manager()
    profile = mgr.get_profile(name)
    if not profile:
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)

    data = profile.model_dump(exclude_none=True)
    if "cookie" in data:
        data["cookie"] = _mask(data["cookie"])
    output(data, fmt, title=f"Profile: {name}")


@app.command("set-default")
@error_handler
def set_default(
    name: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default gateway profile."""
    mgr = _get_manager()
    if mgr.set_default(name):
        console.print(f"[green]Default profile set to '{name}'.[/]")
    else:
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)


@app.command()
@error_handler
def test(
    name: Annotated[Optional[str], typer.Argument(help="Profile name (uses default if omitted)")] = None,
) -> None:
    """Test connectivity to a gateway."""
    mgr = _get_manager()
    profile = mgr.resolve_gateway(profile_name=name)
    console.print(f"Testing connection to [bold]{profile.url}[/]...")

    with GatewayClient(profile) as client:
        if client.health_check():
            console.print("[green]Connected![/]")
        else:
            console.print("[red]Gateway is unreachable or unhealthy.[/]")
            raise typer.Exit(1)


@app.command()
@error_handler
def remove(
    name: Annotated[str, typer.Argument(help="Profile name to remove")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
) -> None:
    """Remove a gateway profile."""
    mgr = _get_manager()
    if not mgr.get_profile(name):
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)

    if not force:
        if not Confirm.ask(f"Remove profile '{name}'?"):
            console.print("Cancelled.")
            return

    mgr.remove_profile(name)
    console.print(f"[green]Profile '{name}' removed.[/]")
