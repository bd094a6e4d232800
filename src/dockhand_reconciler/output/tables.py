"""Rich table builders for records and reconcile outcomes."""

from __future__ import annotations

from typing import Any, Sequence

from rich.markup import escape
from rich.table import Table

# Colour per outcome action; anything unlisted prints plain.
ACTION_STYLES = {
    "create": "green",
    "created": "green",
    "update": "yellow",
    "updated": "yellow",
    "replace": "magenta",
    "replaced": "magenta",
    "refresh": "cyan",
    "refreshed": "cyan",
    "delete": "red",
    "deleted": "red",
    "removed": "red",
    "failed": "bold red",
    "noop": "dim",
    "unchanged": "dim",
}


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return ", ".join(f"{k}={v}" for k, v in value.items())
    return escape(str(value))


def make_table(
    title: str | None,
    columns: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    show_lines: bool = False,
) -> Table:
    """Build a Rich Table from column headers and row data."""
    table = Table(title=title, show_lines=show_lines)
    for col in columns:
        table.add_column(col, no_wrap=False)
    for row in rows:
        table.add_row(*(_cell(cell) for cell in row))
    return table


def kv_table(data: dict[str, Any], *, title: str | None = None) -> Table:
    """Render a record as a two-column field/value table."""
    table = Table(title=title, show_header=False, show_lines=False)
    table.add_column("Field", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, _cell(value))
    return table


def outcome_table(title: str | None, rows: Sequence[Sequence[Any]]) -> Table:
    """Ref / kind / action / detail table with the action coloured."""
    table = Table(title=title)
    for col in ("Ref", "Kind", "Action", "Detail"):
        table.add_column(col, no_wrap=col != "Detail")
    for ref, kind, action, detail in rows:
        style = ACTION_STYLES.get(action)
        label = f"[{style}]{action}[/]" if style else action
        table.add_row(escape(ref), kind, label, _cell(detail))
    return table
