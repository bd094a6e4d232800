"""Output dispatcher — renders data in table, JSON, YAML, or CSV format."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence
from typing import Any

import yaml
from rich.console import Console

from dockhand_reconciler.models import ResourceRecord
from dockhand_reconciler.output.tables import kv_table, make_table, outcome_table
from dockhand_reconciler.reconcile.policy import policy_for
from dockhand_reconciler.reconcile.runner import Outcome

console = Console()

# Columns shown by ``resource list`` per kind; JSON/YAML show everything.
LIST_COLUMNS = {
    "container": ("id", "name", "image", "state", "status"),
    "compose_stack": ("id", "name", "status", "auto_sync"),
    "environment": ("id", "name", "type", "host", "port", "active"),
    "network": ("id", "name", "driver", "scope"),
    "volume": ("id", "name", "driver", "mountpoint"),
    "image": ("id", "repo_tags", "size", "architecture"),
    "image_pull": ("id", "image", "status", "pulled_at"),
}


def _plain(data: Any) -> Any:
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json")
    return data


def output_json(data: Any) -> None:
    """Print data as formatted JSON."""
    console.print_json(json.dumps(_plain(data), indent=2, default=str))


def output_yaml(data: Any) -> None:
    """Print data as YAML."""
    console.print(yaml.safe_dump(_plain(data), default_flow_style=False, sort_keys=False), end="")


def output_csv(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    """Print data as CSV."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(columns)
    writer.writerows(
        [[str(v) if v is not None else "" for v in row] for row in rows]
    )
    console.print(buf.getvalue(), end="", markup=False)


def output(
    data: Any,
    fmt: str = "table",
    *,
    columns: Sequence[str] | None = None,
    rows: Sequence[Sequence[Any]] | None = None,
    title: str | None = None,
) -> None:
    """Dispatch output to the appropriate formatter."""
    if fmt == "json":
        output_json(data)
    elif fmt == "yaml":
        output_yaml(data)
    elif fmt == "csv" and columns and rows is not None:
        output_csv(columns, rows)
    elif fmt == "csv":
        output_json(data)
    elif columns and rows is not None:
        console.print(make_table(title, columns, rows))
    elif isinstance(data, dict):
        console.print(kv_table(data, title=title))
    else:
        console.print(data)


def record_data(kind: str, record: ResourceRecord) -> dict[str, Any]:
    """JSON-ready view of *record* with sensitive values masked."""
    data = policy_for(kind).redact(record)
    return {k: v for k, v in data.items() if v is not None}


def output_record(kind: str, record: ResourceRecord, fmt: str = "table", *, title: str | None = None) -> None:
    output(record_data(kind, record), fmt, title=title)


def output_records(kind: str, records: Sequence[ResourceRecord], fmt: str = "table") -> None:
    data = [record_data(kind, r) for r in records]
    columns = LIST_COLUMNS[kind]
    rows = [[item.get(c) for c in columns] for item in data]
    output(data, fmt, columns=list(columns), rows=rows, title=f"{kind} ({len(rows)})")


def _outcome_detail(outcome: Outcome) -> str:
    if outcome.error is not None:
        return str(outcome.error)
    return ", ".join(outcome.drift)


def output_outcomes(outcomes: Sequence[Outcome], fmt: str = "table", *, title: str | None = None) -> None:
    """Render runner outcomes as a coloured table or a list of dicts."""
    rows = [(o.ref, o.kind.value, o.action, _outcome_detail(o)) for o in outcomes]
    if fmt == "table":
        if rows:
            console.print(outcome_table(title, rows))
        else:
            console.print("[dim]Nothing to do.[/]")
        return
    data = [
        {"ref": ref, "kind": kind, "action": action, "detail": detail}
        for ref, kind, action, detail in rows
    ]
    output(data, fmt, columns=["ref", "kind", "action", "detail"], rows=rows)
