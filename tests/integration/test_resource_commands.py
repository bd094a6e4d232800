"""Integration tests for resource commands."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import respx
from typer.testing import CliRunner

from dockhand_reconciler.app import app
from dockhand_reconciler.models import Kind
from dockhand_reconciler.reconcile.state import StateEntry, StateStore

runner = CliRunner()

GW = ["--url", "https://dh:3000", "--cookie", "session=x"]
BASE = "https://dh:3000/api/environments/e1"

MANIFEST = """
resources:
  - ref: app
    kind: compose_stack
    environment_id: e1
    name: app
    compose: |
      services:
        web:
          image: nginx
    git_repo:
      url: https://git.example/app.git
      auth:
        type: token
        token: ghp_secret
"""


@pytest.fixture
def manifest(tmp_path: Path) -> Path:
    path = tmp_path / "dockhand.yaml"
    path.write_text(MANIFEST)
    return path


@pytest.fixture
def state(tmp_path: Path) -> Path:
    return tmp_path / "state.json"


def _seed(state: Path) -> None:
    store = StateStore(state)
    store.put(StateEntry(
        ref="app",
        kind=Kind.COMPOSE_STACK,
        record={
            "id": "s1",
            "environment_id": "e1",
            "name": "app",
            "compose": "services:\n  web:\n    image: nginx\n",
            "webhook_token": "hook-123",
            "git_repo": {"url": "https://git.example/app.git", "auth": {"type": "token", "token": "ghp_secret"}},
        },
    ))
    store.save()


class TestApply:
    @respx.mock
    def test_apply_creates_and_writes_state(self, manifest, state):
        route = respx.post(f"{BASE}/compose-stacks").mock(
            return_value=httpx.Response(201, json={"id": "s1", "name": "app", "webhook_token": "hook-123"})
        )
        result = runner.invoke(app, ["resource", "apply", str(manifest), "--state", str(state), *GW])
        assert result.exit_code == 0, result.output
        assert "created" in result.output

        body = json.loads(route.calls.last.request.content)
        assert body["git_repo"]["auth"]["token"] == "ghp_secret"
        assert "webhook_token" not in body
        assert "environment_id" not in body

        entry = StateStore(state).get("app")
        assert entry.record["id"] == "s1"
        assert entry.record["webhook_token"] == "hook-123"

    @respx.mock
    def test_apply_failure_exit_code(self, manifest, state):
        respx.post(f"{BASE}/compose-stacks").mock(return_value=httpx.Response(500, text="compose invalid"))
        result = runner.invoke(app, ["resource", "apply", str(manifest), "--state", str(state), *GW])
        assert result.exit_code == 8
        assert "failed" in result.output
        assert StateStore(state).get("app") is None

    def test_apply_without_endpoint(self, manifest, state, tmp_path, monkeypatch):
        monkeypatch.setattr("dockhand_reconciler.config.manager.CONFIG_FILE", tmp_path / "none.toml")
        result = runner.invoke(app, ["resource", "apply", str(manifest), "--state", str(state)])
        assert result.exit_code == 6

    def test_state_from_env(self, manifest, state, monkeypatch):
        _seed(state)
        monkeypatch.setenv("DOCKHAND_STATE_FILE", str(state))
        result = runner.invoke(app, ["resource", "plan", str(manifest), "-f", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)[0]["action"] == "noop"


class TestPlan:
    def test_plan_create(self, manifest, state):
        result = runner.invoke(app, ["resource", "plan", str(manifest), "--state", str(state), "-f", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"ref": "app", "kind": "compose_stack", "action": "create", "detail": ""},
        ]

    def test_plan_update_with_diff(self, manifest, state):
        _seed(state)
        manifest.write_text(MANIFEST + "    labels:\n      team: web\n")
        result = runner.invoke(app, ["resource", "plan", str(manifest), "--state", str(state), "--diff"])
        assert result.exit_code == 0
        assert "update" in result.output
        assert "team" in result.output
        assert "ghp_secret" not in result.output

    def test_plan_orphan_delete(self, manifest, state):
        _seed(state)
        manifest.write_text("resources: []\n")
        result = runner.invoke(app, ["resource", "plan", str(manifest), "--state", str(state), "-f", "json"])
        assert json.loads(result.output)[0]["action"] == "delete"

    def test_invalid_manifest(self, tmp_path, state):
        bad = tmp_path / "bad.yaml"
        bad.write_text("resources:\n  - {ref: x, kind: pod}\n")
        result = runner.invoke(app, ["resource", "plan", str(bad), "--state", str(state)])
        assert result.exit_code == 7


class TestShowAndList:
    def test_show_redacts(self, state):
        _seed(state)
        result = runner.invoke(app, ["resource", "show", "app", "--state", str(state), "-f", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["webhook_token"] == "***"
        assert data["git_repo"]["auth"]["token"] == "***"
        assert "ghp_secret" not in result.output

    def test_show_unknown(self, state):
        result = runner.invoke(app, ["resource", "show", "nope", "--state", str(state)])
        assert result.exit_code == 1

    @respx.mock
    def test_list(self):
        respx.get(f"{BASE}/volumes").mock(
            return_value=httpx.Response(200, json=[{"id": "v1", "name": "data", "driver": "local"}])
        )
        result = runner.invoke(app, ["resource", "list", "volume", "--env", "e1", *GW, "-f", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"id": "v1", "environment_id": "e1", "name": "data", "driver": "local"},
        ]

    def test_list_scoped_needs_env(self):
        result = runner.invoke(app, ["resource", "list", "volume", *GW])
        assert result.exit_code == 7


class TestRefreshAndDestroy:
    @respx.mock
    def test_refresh_drops_vanished(self, state):
        _seed(state)
        respx.get(f"{BASE}/compose-stacks/s1").mock(return_value=httpx.Response(404))
        result = runner.invoke(app, ["resource", "refresh", "--state", str(state), *GW])
        assert result.exit_code == 0
        assert "removed" in result.output
        assert StateStore(state).get("app") is None

    @respx.mock
    def test_refresh_keeps_secrets(self, state):
        _seed(state)
        respx.get(f"{BASE}/compose-stacks/s1").mock(
            return_value=httpx.Response(200, json={
                "id": "s1", "status": "running",
                "git_repo": {"url": "https://git.example/app.git", "auth": {"type": "token"}},
            })
        )
        result = runner.invoke(app, ["resource", "refresh", "--state", str(state), *GW])
        assert result.exit_code == 0
        record = StateStore(state).get("app").record
        assert record["status"] == "running"
        assert record["webhook_token"] == "hook-123"
        assert record["git_repo"]["auth"]["token"] == "ghp_secret"

    @respx.mock
    def test_destroy_force(self, state):
        _seed(state)
        route = respx.delete(f"{BASE}/compose-stacks/s1").mock(return_value=httpx.Response(204))
        result = runner.invoke(app, ["resource", "destroy", "--force", "--state", str(state), *GW])
        assert result.exit_code == 0
        assert route.called
        assert len(StateStore(state)) == 0

    def test_destroy_unknown_ref(self, state):
        _seed(state)
        result = runner.invoke(app, ["resource", "destroy", "nope", "--force", "--state", str(state), *GW])
        assert result.exit_code == 7

    def test_destroy_cancelled(self, state):
        _seed(state)
        result = runner.invoke(app, ["resource", "destroy", "--state", str(state), *GW], input="n\n")
        assert "Cancelled" in result.output
        assert len(StateStore(state)) == 1
