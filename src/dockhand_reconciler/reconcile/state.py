"""Persisted state file: one entry per managed object, keyed by ref."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from dockhand_reconciler.client.errors import InvalidRecordError
from dockhand_reconciler.models import Kind, ResourceRecord
from dockhand_reconciler.reconcile.policy import policy_for

STATE_VERSION = 1


class StateEntry(BaseModel):
    """Last known state of one object.

    ``tainted`` marks a record left behind by a failed replace; its remote
    existence is unknown until it has been read again.
    """

    ref: str
    kind: Kind
    tainted: bool = False
    record: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(
        cls, ref: str, kind: Kind, record: ResourceRecord, *, tainted: bool = False,
    ) -> StateEntry:
        return cls(ref=ref, kind=kind, tainted=tainted, record=record.model_dump(mode="json"))

    def to_record(self) -> ResourceRecord:
        return policy_for(self.kind).model.model_validate(self.record)

    @property
    def key(self) -> tuple[Kind, str, str]:
        return (self.kind, self.record.get("environment_id") or "", self.record.get("id") or "")


class StateStore:
    """JSON state file held on behalf of the reconciler."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._entries: dict[str, StateEntry] | None = None

    @property
    def entries(self) -> dict[str, StateEntry]:
        if self._entries is None:
            self._entries = self._load()
        return self._entries

    def _load(self) -> dict[str, StateEntry]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InvalidRecordError(f"state file {self.path} is not valid JSON: {exc}") from exc
        version = data.get("version", STATE_VERSION)
        if version != STATE_VERSION:
            raise InvalidRecordError(
                f"state file {self.path} has version {version}, expected {STATE_VERSION}"
            )
        entries: dict[str, StateEntry] = {}
        try:
            for raw in data.get("resources", []):
                entry = StateEntry.model_validate(raw)
                self._check_unique(entry, entries)
                entries[entry.ref] = entry
        except ValidationError as exc:
            raise InvalidRecordError(f"state file {self.path} is malformed: {exc}") from exc
        return entries

    @staticmethod
    def _check_unique(entry: StateEntry, entries: dict[str, StateEntry]) -> None:
        if entry.ref in entries and entries[entry.ref] is not entry:
            raise InvalidRecordError(f"duplicate state ref '{entry.ref}'")
        if not entry.key[2]:
            return
        for other in entries.values():
            if other.ref != entry.ref and other.key == entry.key:
                kind, env, obj = entry.key
                raise InvalidRecordError(
                    f"'{entry.ref}' and '{other.ref}' both address {kind.value} {obj}"
                    + (f" in {env}" if env else "")
                )

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": STATE_VERSION,
            "resources": [e.model_dump(mode="json") for e in self.entries.values()],
        }
        # Records carry secrets: owner-only
        temp = self.path.with_suffix(self.path.suffix + ".tmp")
        fd = os.open(str(temp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            os.write(fd, json.dumps(data, indent=2, sort_keys=True).encode())
        finally:
            os.close(fd)
        temp.replace(self.path)

    def get(self, ref: str) -> StateEntry | None:
        return self.entries.get(ref)

    def put(self, entry: StateEntry) -> None:
        entries = dict(self.entries)
        entries.pop(entry.ref, None)
        self._check_unique(entry, entries)
        self.entries[entry.ref] = entry

    def remove(self, ref: str) -> bool:
        return self.entries.pop(ref, None) is not None

    def __iter__(self) -> Iterator[StateEntry]:
        return iter(list(self.entries.values()))

    def __len__(self) -> int:
        return len(self.entries)
