"""Colored unified diff between desired and persisted records."""

from __future__ import annotations

import difflib
import json
from typing import Any

from rich.console import Console
from rich.syntax import Syntax


def diff_records(
    ref: str,
    persisted: dict[str, Any],
    desired: dict[str, Any],
    console: Console,
) -> bool:
    """Print a diff of *persisted* → *desired*; return True when they differ."""
    before = json.dumps(persisted, indent=2, sort_keys=True).splitlines(keepends=True)
    after = json.dumps(desired, indent=2, sort_keys=True).splitlines(keepends=True)

    diff_lines = list(difflib.unified_diff(
        before,
        after,
        fromfile=f"{ref} (state)",
        tofile=f"{ref} (desired)",
        lineterm="",
    ))

    if not diff_lines:
        console.print(f"[green]No differences for '{ref}'.[/]")
        return False

    diff_text = "\n".join(line.rstrip() for line in diff_lines)
    console.print(Syntax(diff_text, "diff", theme="monokai", line_numbers=True))
    return True
