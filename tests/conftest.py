"""Shared test fixtures."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest

from dockhand_reconciler.client.errors import DockhandError, NotFoundError
from dockhand_reconciler.config.manager import ConfigManager
from dockhand_reconciler.config.models import GatewayProfile
from dockhand_reconciler.models import Kind


class FakeGateway:
    """In-memory gateway that records every call.

    Objects live in ``objects[(kind, env_id, id)]``. ``fail`` maps an
    operation name (``create``, ``get``, ...) to an exception raised the
    next time that operation is called; ``responses`` overrides the next
    body returned by ``create`` or ``update``.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[Kind, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.fail: dict[str, DockhandError] = {}
        self.responses: dict[str, dict[str, Any]] = {}
        self._next = 0

    def _maybe_fail(self, operation: str) -> None:
        exc = self.fail.pop(operation, None)
        if exc is not None:
            raise exc

    def new_id(self) -> str:
        self._next += 1
        return f"obj-{self._next}"

    def list(self, kind: Kind, env_id: str = "") -> list[dict[str, Any]]:
        self.calls.append(("list", kind, env_id))
        self._maybe_fail("list")
        return [dict(v) for (k, e, _), v in self.objects.items() if k is kind and e == env_id]

    def get(self, kind: Kind, env_id: str, object_id: str) -> dict[str, Any]:
        self.calls.append(("get", kind, env_id, object_id))
        self._maybe_fail("get")
        if (kind, env_id, object_id) not in self.objects:
            raise NotFoundError(404, "not found")
        return dict(self.objects[(kind, env_id, object_id)])

    def create(self, kind: Kind, env_id: str, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", kind, env_id, body))
        self._maybe_fail("create")
        data = dict(self.responses.pop("create", None) or {**body, "id": self.new_id()})
        self.objects[(kind, env_id, data["id"])] = data
        return dict(data)

    def update(
        self, kind: Kind, env_id: str, object_id: str, body: dict[str, Any],
    ) -> dict[str, Any]:
        self.calls.append(("update", kind, env_id, object_id, body))
        self._maybe_fail("update")
        current = self.objects.setdefault((kind, env_id, object_id), {"id": object_id})
        current.update(body)
        return dict(self.responses.pop("update", None) or current)

    def delete(self, kind: Kind, env_id: str, object_id: str) -> None:
        self.calls.append(("delete", kind, env_id, object_id))
        self._maybe_fail("delete")
        if self.objects.pop((kind, env_id, object_id), None) is None:
            raise NotFoundError(404, "not found")

    def pull(self, env_id: str, body: dict[str, Any]) -> None:
        self.calls.append(("pull", env_id, body))
        self._maybe_fail("pull")
        image_id = f"sha256:{self.new_id()}"
        self.objects[(Kind.IMAGE, env_id, image_id)] = {
            "id": image_id, "repo_tags": [body["image"]],
        }

    def ops(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Return a temporary config file path."""
    return tmp_path / "config.toml"


@pytest.fixture
def config_manager(tmp_config: Path) -> ConfigManager:
    """Return a ConfigManager pointed at a temp config file."""
    return ConfigManager(config_path=tmp_config)


@pytest.fixture
def sample_profile() -> GatewayProfile:
    """Return a sample gateway profile for testing."""
    return GatewayProfile(
        name="test-gw",
        url="https://dockhand:3000",
        cookie="session=abc123",
    )


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's DOCKHAND_* variables out of the tests."""
    for var in (
        "DOCKHAND_ENDPOINT",
        "DOCKHAND_COOKIE",
        "DOCKHAND_PROFILE",
        "DOCKHAND_LOG_LEVEL",
        "DOCKHAND_LOG_FILE",
        "DOCKHAND_STATE_FILE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo the root logger setup done by the CLI callback."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
