"""Desired-state manifests.

A manifest is a YAML document listing the objects to manage::

    resources:
      - ref: web
        kind: container
        environment_id: e1
        name: web
        image: nginx:1.25
        env: ["A=1"]

``ref`` is the stable handle that ties a manifest entry to its state
entry; every other key is a field of the record for ``kind``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from dockhand_reconciler.client.errors import InvalidRecordError
from dockhand_reconciler.models import Kind, ResourceRecord
from dockhand_reconciler.reconcile.policy import policy_for


class ManifestEntry(BaseModel):
    """One desired object."""

    model_config = ConfigDict(extra="allow")

    ref: str
    kind: Kind

    def fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def to_record(self) -> ResourceRecord:
        policy = policy_for(self.kind)
        data = self.fields()
        unknown = sorted(set(data) - set(policy.fields))
        if unknown:
            raise InvalidRecordError(
                f"{self.ref}: unknown {self.kind.value} field(s): {', '.join(unknown)}"
            )
        try:
            return policy.model.model_validate(data)
        except ValidationError as exc:
            raise InvalidRecordError(f"{self.ref}: {exc}") from exc


class Manifest(BaseModel):
    resources: list[ManifestEntry] = []

    @field_validator("resources")
    @classmethod
    def unique_refs(cls, v: list[ManifestEntry]) -> list[ManifestEntry]:
        seen: set[str] = set()
        for entry in v:
            if entry.ref in seen:
                raise ValueError(f"duplicate ref '{entry.ref}'")
            seen.add(entry.ref)
        return v


def parse_manifest(text: str) -> Manifest:
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise InvalidRecordError(f"manifest is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidRecordError("manifest must be a mapping with a 'resources' list")
    try:
        return Manifest.model_validate(data)
    except ValidationError as exc:
        raise InvalidRecordError(f"invalid manifest: {exc}") from exc


def load_manifest(path: Path) -> Manifest:
    if not path.exists():
        raise InvalidRecordError(f"manifest not found: {path}")
    return parse_manifest(path.read_text(encoding="utf-8"))
