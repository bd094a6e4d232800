"""Resource commands — reconcile a manifest against the gateway.

A manifest lists desired objects by ``ref``; the state file remembers
what each ref currently maps to upstream. ``plan`` compares the two,
``apply`` makes the gateway match, ``refresh`` re-reads what exists,
``destroy`` removes managed objects.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional, Sequence

import typer
from rich.console import Console
from rich.prompt import Confirm

from dockhand_reconciler.client.errors import InvalidRecordError, error_handler
from dockhand_reconciler.commands._common import (
    CookieOpt,
    FormatOpt,
    ProfileOpt,
    StateOpt,
    UrlOpt,
    make_client,
    open_state,
)
from dockhand_reconciler.models import Kind
from dockhand_reconciler.output.formatter import output_outcomes, output_record, output_records
from dockhand_reconciler.reconcile import ReconcileEngine, policy_for
from dockhand_reconciler.reconcile.manifest import load_manifest
from dockhand_reconciler.reconcile.runner import (
    Outcome,
    apply_manifest,
    destroy,
    plan_manifest,
    refresh_state,
)
from dockhand_reconciler.utils.diff import diff_records

app = typer.Typer(name="resource", help="Plan, apply and inspect managed Docker objects.")
console = Console()

ManifestArg = Annotated[Path, typer.Argument(help="Manifest file (YAML)")]


def _exit_on_failure(outcomes: Sequence[Outcome]) -> None:
    failed = [o for o in outcomes if not o.ok]
    if failed:
        console.print(f"[red]{len(failed)} of {len(outcomes)} object(s) failed.[/]")
        raise typer.Exit(failed[0].error.exit_code if failed[0].error else 1)


@app.command()
@error_handler
def plan(
    manifest: ManifestArg,
    state: StateOpt = None,
    diff: Annotated[bool, typer.Option("--diff", help="Show field diffs for pending updates")] = False,
    fmt: FormatOpt = "table",
) -> None:
    """Show what apply would do, without contacting the gateway."""
    desired = load_manifest(manifest)
    store = open_state(state)
    outcomes = plan_manifest(desired, store)
    output_outcomes(outcomes, fmt, title="Plan")
    if diff:
        pending = {o.ref for o in outcomes if o.action in ("update", "replace", "refresh")}
        for entry in desired.resources:
            current = store.get(entry.ref)
            if entry.ref in pending and current is not None:
                policy = policy_for(entry.kind)
                diff_records(
                    entry.ref,
                    policy.redact(current.to_record()),
                    policy.redact(policy.without_computed(entry.to_record())),
                    console,
                )
    _exit_on_failure(outcomes)


@app.command()
@error_handler
def apply(
    manifest: ManifestArg,
    state: StateOpt = None,
    no_prune: Annotated[bool, typer.Option("--no-prune", help="Keep state entries missing from the manifest")] = False,
    profile: ProfileOpt = None,
    url: UrlOpt = None,
    cookie: CookieOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Create, update and delete objects so the gateway matches the manifest."""
    desired = load_manifest(manifest)
    store = open_state(state)
    with make_client(profile, url, cookie) as client:
        outcomes = apply_manifest(ReconcileEngine(client), desired, store, prune=not no_prune)
    output_outcomes(outcomes, fmt, title="Apply")
    _exit_on_failure(outcomes)


@app.command()
@error_handler
def refresh(
    state: StateOpt = None,
    profile: ProfileOpt = None,
    url: UrlOpt = None,
    cookie: CookieOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Re-read every object in the state file."""
    store = open_state(state)
    with make_client(profile, url, cookie) as client:
        outcomes = refresh_state(ReconcileEngine(client), store)
    output_outcomes(outcomes, fmt, title="Refresh")
    _exit_on_failure(outcomes)


@app.command("destroy")
@error_handler
def destroy_cmd(
    refs: Annotated[Optional[list[str]], typer.Argument(help="Refs to destroy (all when omitted)")] = None,
    state: StateOpt = None,
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation")] = False,
    profile: ProfileOpt = None,
    url: UrlOpt = None,
    cookie: CookieOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Delete managed objects and drop them from the state file."""
    store = open_state(state)
    if refs:
        unknown = [r for r in refs if store.get(r) is None]
        if unknown:
            raise InvalidRecordError(f"not in state: {', '.join(unknown)}")
    count = len(refs) if refs else len(store)
    if not count:
        console.print("[dim]Nothing to destroy.[/]")
        return
    if not force:
        if not Confirm.ask(f"Destroy {count} object(s)?"):
            console.print("Cancelled.")
            return
    with make_client(profile, url, cookie) as client:
        outcomes = destroy(ReconcileEngine(client), store, refs or None)
    output_outcomes(outcomes, fmt, title="Destroy")
    _exit_on_failure(outcomes)


@app.command()
@error_handler
def show(
    ref: Annotated[str, typer.Argument(help="Ref from the state file")],
    state: StateOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show the persisted record for a ref, secrets masked."""
    store = open_state(state)
    entry = store.get(ref)
    if entry is None:
        console.print(f"[red]'{ref}' is not in the state file.[/]")
        raise typer.Exit(1)
    title = f"{ref} ({entry.kind.value})" + (" [tainted]" if entry.tainted else "")
    output_record(entry.kind.value, entry.to_record(), fmt, title=title)


@app.command("list")
@error_handler
def list_objects(
    kind: Annotated[Kind, typer.Argument(help="Object kind")],
    env: Annotated[Optional[str], typer.Option("--env", "-e", help="Environment id")] = None,
    profile: ProfileOpt = None,
    url: UrlOpt = None,
    cookie: CookieOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List objects of a kind straight from the gateway."""
    if kind is Kind.IMAGE_PULL:
        raise InvalidRecordError("image pulls are not listed upstream; list 'image' instead")
    policy = policy_for(kind)
    with make_client(profile, url, cookie) as client:
        items = client.list(kind, env or "")
    records = []
    for item in items:
        if policy.scoped:
            item = {"environment_id": env, **item}
        records.append(policy.model.model_validate(item))
    output_records(kind.value, records, fmt)
