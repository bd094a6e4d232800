"""Integration tests for container and stack commands."""

from __future__ import annotations

import httpx
import pytest
import respx
from typer.testing import CliRunner

from dockhand_reconciler.app import app

runner = CliRunner()

GW = ["--url", "https://dh:3000", "--cookie", "session=x"]
BASE = "https://dh:3000/api/environments/e1"


class TestContainerCommands:
    @pytest.mark.parametrize("verb", ["start", "stop", "restart", "pause", "unpause"])
    @respx.mock
    def test_verbs(self, verb):
        route = respx.post(f"{BASE}/containers/c1/{verb}").mock(return_value=httpx.Response(204))
        result = runner.invoke(app, ["container", verb, "c1", "--env", "e1", *GW])
        assert result.exit_code == 0
        assert route.called

    def test_env_required(self):
        result = runner.invoke(app, ["container", "start", "c1", *GW])
        assert result.exit_code != 0

    @respx.mock
    def test_missing_container(self):
        respx.post(f"{BASE}/containers/c9/start").mock(return_value=httpx.Response(404, text="no such container"))
        result = runner.invoke(app, ["container", "start", "c9", "--env", "e1", *GW])
        assert result.exit_code == 4


class TestStackCommands:
    @respx.mock
    def test_start(self):
        route = respx.post(f"{BASE}/compose-stacks/s1/start").mock(return_value=httpx.Response(200))
        result = runner.invoke(app, ["stack", "start", "s1", "--env", "e1", *GW])
        assert result.exit_code == 0
        assert route.called

    @respx.mock
    def test_stop(self):
        route = respx.post(f"{BASE}/compose-stacks/s1/stop").mock(return_value=httpx.Response(200))
        result = runner.invoke(app, ["stack", "stop", "s1", "--env", "e1", *GW])
        assert result.exit_code == 0
        assert route.called
