"""Walk a manifest and a state file through the engine, one object at a time."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from dockhand_reconciler.client.errors import (
    DockhandError,
    InvalidRecordError,
    PartialReplaceFailure,
)
from dockhand_reconciler.models import Kind
from dockhand_reconciler.reconcile.engine import Action, ReconcileEngine, ReconcileResult
from dockhand_reconciler.reconcile.manifest import Manifest, ManifestEntry
from dockhand_reconciler.reconcile.planner import plan_update
from dockhand_reconciler.reconcile.policy import policy_for
from dockhand_reconciler.reconcile.state import StateEntry, StateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of reconciling one ref."""

    ref: str
    kind: Kind
    action: str
    drift: tuple[str, ...] = ()
    error: DockhandError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _persist(store: StateStore, ref: str, result: ReconcileResult) -> None:
    if result.record is None:
        store.remove(ref)
    else:
        store.put(StateEntry.from_record(ref, result.kind, result.record))
    store.save()


def _failed(ref: str, kind: Kind, exc: DockhandError) -> Outcome:
    logger.warning("%s (%s) failed: %s", ref, kind.value, exc)
    return Outcome(ref, kind, "failed", error=exc)


def plan_manifest(manifest: Manifest, store: StateStore) -> list[Outcome]:
    """Describe what :func:`apply_manifest` would do, without calling the gateway."""
    lines = []
    for entry in manifest.resources:
        current = store.get(entry.ref)
        try:
            desired = entry.to_record()
            policy_for(entry.kind).validate(desired)
        except DockhandError as exc:
            lines.append(_failed(entry.ref, entry.kind, exc))
            continue
        if current is None or current.tainted or not current.key[2]:
            lines.append(Outcome(entry.ref, entry.kind, "create"))
            continue
        plan = plan_update(policy_for(entry.kind), desired, current.to_record())
        lines.append(Outcome(entry.ref, entry.kind, plan.decision.value, plan.changed))
    wanted = {e.ref for e in manifest.resources}
    for current in store:
        if current.ref not in wanted:
            lines.append(Outcome(current.ref, current.kind, "delete"))
    return lines


def _apply_entry(engine: ReconcileEngine, entry: ManifestEntry, store: StateStore) -> Outcome:
    current = store.get(entry.ref)
    try:
        desired = entry.to_record()
        if current is not None and current.kind is not entry.kind:
            raise InvalidRecordError(
                f"{entry.ref} changed kind from {current.kind.value} to "
                f"{entry.kind.value}; destroy it first"
            )
        if current is not None and current.tainted:
            # Left behind by a failed replace: find out what exists first.
            resync = engine.locate(current.kind, desired, current.to_record())
            _persist(store, entry.ref, resync)
            current = store.get(entry.ref)
        if current is None or not current.key[2]:
            result = engine.create(entry.kind, desired)
        else:
            result = engine.update(entry.kind, desired, current.to_record())
            if result.action is Action.REMOVED:
                result = engine.create(entry.kind, desired)
    except PartialReplaceFailure as exc:
        store.put(StateEntry.from_record(entry.ref, entry.kind, exc.record, tainted=True))
        store.save()
        return _failed(entry.ref, entry.kind, exc)
    except DockhandError as exc:
        return _failed(entry.ref, entry.kind, exc)
    _persist(store, entry.ref, result)
    return Outcome(entry.ref, entry.kind, result.action.value, result.drift)


def _destroy_entry(engine: ReconcileEngine, entry: StateEntry, store: StateStore) -> Outcome:
    try:
        result = engine.delete(entry.kind, entry.to_record())
    except DockhandError as exc:
        return _failed(entry.ref, entry.kind, exc)
    _persist(store, entry.ref, result)
    return Outcome(entry.ref, entry.kind, result.action.value)


def apply_manifest(
    engine: ReconcileEngine, manifest: Manifest, store: StateStore, *, prune: bool = True,
) -> list[Outcome]:
    """Create, update and (with *prune*) delete so that state matches *manifest*.

    Objects are handled in manifest order; a failure is recorded and the
    remaining objects are still processed.
    """
    outcomes = [_apply_entry(engine, entry, store) for entry in manifest.resources]
    if prune:
        wanted = {e.ref for e in manifest.resources}
        for entry in store:
            if entry.ref not in wanted:
                outcomes.append(_destroy_entry(engine, entry, store))
    return outcomes


def refresh_state(engine: ReconcileEngine, store: StateStore) -> list[Outcome]:
    """Read every state entry again, dropping objects that vanished upstream."""
    outcomes = []
    for entry in store:
        try:
            result = engine.read(entry.kind, entry.to_record())
        except DockhandError as exc:
            outcomes.append(_failed(entry.ref, entry.kind, exc))
            continue
        _persist(store, entry.ref, result)
        outcomes.append(Outcome(entry.ref, entry.kind, result.action.value))
    return outcomes


def destroy(
    engine: ReconcileEngine, store: StateStore, refs: Iterable[str] | None = None,
) -> list[Outcome]:
    """Delete the given refs (all of them when *refs* is None)."""
    selected = set(refs) if refs is not None else None
    return [
        _destroy_entry(engine, entry, store)
        for entry in store
        if selected is None or entry.ref in selected
    ]
