"""Tests for applying manifests against the state file."""

from __future__ import annotations

from pathlib import Path

import pytest

from dockhand_reconciler.client.errors import (
    InvalidRecordError,
    PartialReplaceFailure,
    RemoteRejected,
    RemoteUnavailable,
)
from dockhand_reconciler.models import Kind
from dockhand_reconciler.reconcile import ReconcileEngine
from dockhand_reconciler.reconcile.manifest import parse_manifest
from dockhand_reconciler.reconcile.runner import apply_manifest, destroy, plan_manifest, refresh_state
from dockhand_reconciler.reconcile.state import StateEntry, StateStore

WEB = """
  - ref: web
    kind: container
    environment_id: {env}
    name: web
    image: nginx
    env: [{var}]
"""
NET = """
  - ref: net
    kind: network
    environment_id: e1
    name: backend
"""


def manifest(*blocks: str):
    return parse_manifest("resources:" + "".join(blocks))


def web(env: str = "e1", var: str = "A=1") -> str:
    return WEB.format(env=env, var=var)


@pytest.fixture
def store(tmp_path: Path) -> StateStore:
    return StateStore(tmp_path / "state.json")


@pytest.fixture
def engine(gateway) -> ReconcileEngine:
    return ReconcileEngine(gateway)


class TestApply:
    def test_creates_and_persists(self, engine, gateway, store):
        outcomes = apply_manifest(engine, manifest(web(), NET), store)
        assert [(o.ref, o.action) for o in outcomes] == [("web", "created"), ("net", "created")]
        reloaded = StateStore(store.path)
        assert reloaded.get("web").record["id"] == "obj-1"
        assert reloaded.get("net").record["id"] == "obj-2"

    def test_second_apply_is_unchanged(self, engine, gateway, store):
        apply_manifest(engine, manifest(web()), store)
        gateway.calls.clear()
        outcomes = apply_manifest(engine, manifest(web()), store)
        assert outcomes[0].action == "unchanged"
        assert gateway.calls == []

    def test_update_in_place(self, engine, gateway, store):
        apply_manifest(engine, manifest(web()), store)
        outcomes = apply_manifest(engine, manifest(web(var="A=2")), store)
        assert outcomes[0].action == "updated"
        assert outcomes[0].drift == ("env",)
        assert store.get("web").record["env"] == ["A=2"]

    def test_environment_move_replaces(self, engine, gateway, store):
        apply_manifest(engine, manifest(web()), store)
        outcomes = apply_manifest(engine, manifest(web(env="e2")), store)
        assert outcomes[0].action == "replaced"
        assert store.get("web").record["environment_id"] == "e2"
        assert store.get("web").record["id"] == "obj-2"

    def test_prunes_orphans(self, engine, gateway, store):
        apply_manifest(engine, manifest(web(), NET), store)
        outcomes = apply_manifest(engine, manifest(web()), store)
        assert [(o.ref, o.action) for o in outcomes] == [("web", "unchanged"), ("net", "deleted")]
        assert store.get("net") is None

    def test_no_prune(self, engine, gateway, store):
        apply_manifest(engine, manifest(web(), NET), store)
        apply_manifest(engine, manifest(web()), store, prune=False)
        assert store.get("net") is not None

    def test_failure_does_not_stop_others(self, engine, gateway, store):
        gateway.fail["create"] = RemoteRejected(500, "boom")
        outcomes = apply_manifest(engine, manifest(web(), NET), store)
        assert [o.action for o in outcomes] == ["failed", "created"]
        assert not outcomes[0].ok
        assert isinstance(outcomes[0].error, RemoteRejected)
        assert store.get("web") is None

    def test_partial_replace_taints_then_recovers(self, engine, gateway, store):
        apply_manifest(engine, manifest(web()), store)
        gateway.fail["create"] = RemoteRejected(500, "no space")
        outcomes = apply_manifest(engine, manifest(web(env="e2")), store)
        assert isinstance(outcomes[0].error, PartialReplaceFailure)
        entry = store.get("web")
        assert entry.tainted
        assert entry.record["id"] == ""

        outcomes = apply_manifest(engine, manifest(web(env="e2")), store)
        assert outcomes[0].action == "created"
        entry = store.get("web")
        assert not entry.tainted
        assert entry.record["environment_id"] == "e2"

    def test_tainted_entry_adopts_object_created_upstream(self, engine, gateway, store):
        apply_manifest(engine, manifest(web()), store)
        gateway.fail["create"] = RemoteUnavailable("timed out")
        apply_manifest(engine, manifest(web(env="e2")), store)
        assert store.get("web").tainted
        # The server finished the create after the client gave up.
        gateway.objects[(Kind.CONTAINER, "e2", "obj-7")] = {
            "id": "obj-7", "name": "web", "image": "nginx", "env": ["A=1"],
        }
        gateway.calls.clear()

        outcomes = apply_manifest(engine, manifest(web(env="e2")), store)
        assert gateway.ops() == ["list"]
        assert outcomes[0].action == "unchanged"
        entry = store.get("web")
        assert not entry.tainted
        assert entry.record["id"] == "obj-7"
        assert entry.record["environment_id"] == "e2"
        assert [key for key in gateway.objects if key[1] == "e2"] == [(Kind.CONTAINER, "e2", "obj-7")]

    def test_unusable_replace_response_does_not_stop_others(self, engine, gateway, store):
        apply_manifest(engine, manifest(web()), store)
        gateway.responses["create"] = {"id": "c2", "ports": "garbage"}
        outcomes = apply_manifest(engine, manifest(web(env="e2"), NET), store)
        assert [o.action for o in outcomes] == ["failed", "created"]
        assert isinstance(outcomes[0].error, PartialReplaceFailure)
        assert store.get("web").tainted

    def test_vanished_refresh_kind_is_recreated(self, engine, gateway, store):
        apply_manifest(engine, manifest(NET), store)
        gateway.objects.clear()
        changed = NET + "    driver: overlay\n"
        outcomes = apply_manifest(engine, manifest(changed), store)
        assert outcomes[0].action == "created"

    def test_kind_change_rejected(self, engine, gateway, store):
        store.put(StateEntry(ref="web", kind=Kind.VOLUME, record={"id": "v1", "environment_id": "e1"}))
        outcomes = apply_manifest(engine, manifest(web()), store, prune=False)
        assert isinstance(outcomes[0].error, InvalidRecordError)
        assert "destroy it first" in str(outcomes[0].error)


class TestPlan:
    def test_describes_pending_work(self, engine, gateway, store):
        apply_manifest(engine, manifest(web(), NET), store)
        extra = "\n  - ref: data\n    kind: volume\n    environment_id: e1\n    name: data\n"
        lines = plan_manifest(manifest(web(var="A=2"), extra), store)
        assert [(o.ref, o.action) for o in lines] == [
            ("web", "update"), ("data", "create"), ("net", "delete"),
        ]
        assert lines[0].drift == ("env",)

    def test_invalid_entry_reported(self, store):
        lines = plan_manifest(manifest("\n  - {ref: x, kind: container, environment_id: e1}\n"), store)
        assert lines[0].action == "failed"

    def test_no_gateway_calls(self, engine, gateway, store):
        apply_manifest(engine, manifest(web()), store)
        gateway.calls.clear()
        plan_manifest(manifest(web(env="e2")), store)
        assert gateway.calls == []


class TestRefreshAndDestroy:
    def test_refresh_drops_vanished(self, engine, gateway, store):
        apply_manifest(engine, manifest(web(), NET), store)
        del gateway.objects[(Kind.NETWORK, "e1", "obj-2")]
        outcomes = refresh_state(engine, store)
        assert [o.action for o in outcomes] == ["read", "removed"]
        assert store.get("net") is None
        assert len(StateStore(store.path)) == 1

    def test_destroy_selected(self, engine, gateway, store):
        apply_manifest(engine, manifest(web(), NET), store)
        outcomes = destroy(engine, store, ["net"])
        assert [(o.ref, o.action) for o in outcomes] == [("net", "deleted")]
        assert store.get("web") is not None

    def test_destroy_all(self, engine, gateway, store):
        apply_manifest(engine, manifest(web(), NET), store)
        destroy(engine, store)
        assert len(store) == 0
        assert gateway.objects == {}
