"""Decide what an update has to do: nothing, a PUT, a replace, or a re-read."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from dockhand_reconciler.models.common import ResourceRecord
from dockhand_reconciler.reconcile.policy import ChangeStrategy, FieldPolicy, KindPolicy


class Decision(str, enum.Enum):
    NOOP = "noop"
    UPDATE = "update"
    REPLACE = "replace"
    REFRESH = "refresh"


@dataclass(frozen=True)
class UpdatePlan:
    decision: Decision
    changed: tuple[str, ...] = ()
    payload: dict[str, Any] = field(default_factory=dict)


def _comparable(record: ResourceRecord, name: str) -> Any:
    return record.model_dump(include={name}, mode="json").get(name)


def changed_fields(
    policy: KindPolicy, desired: ResourceRecord, persisted: ResourceRecord,
) -> tuple[str, ...]:
    """Configurable fields whose desired value differs from the persisted one.

    Computed fields never count. An optional field the caller left unset
    accepts whatever the server assigned and never counts either.
    """
    changed = []
    for name, flags in policy.fields.items():
        if flags & FieldPolicy.COMPUTED:
            continue
        want = _comparable(desired, name)
        if want is None and not flags & FieldPolicy.REQUIRED:
            continue
        if want != _comparable(persisted, name):
            changed.append(name)
    return tuple(changed)


def plan_update(
    policy: KindPolicy, desired: ResourceRecord, persisted: ResourceRecord,
) -> UpdatePlan:
    changed = changed_fields(policy, desired, persisted)
    if not changed:
        return UpdatePlan(Decision.NOOP)
    if policy.immutable.intersection(changed):
        return UpdatePlan(Decision.REPLACE, changed)
    if policy.on_change is ChangeStrategy.REFRESH:
        return UpdatePlan(Decision.REFRESH, changed)
    payload = policy.payload(desired, only=policy.mutable.intersection(changed))
    return UpdatePlan(Decision.UPDATE, changed, payload)
