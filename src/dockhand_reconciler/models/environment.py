"""Environment (Docker host) data models."""

from __future__ import annotations

from pydantic import BaseModel

from dockhand_reconciler.models.common import ResourceRecord


class EnvironmentAuth(BaseModel):
    """Credentials used by the gateway to reach a Docker host."""

    type: str | None = None
    username: str | None = None
    password: str | None = None
    key: str | None = None
    cert_path: str | None = None


class DockerInfo(BaseModel):
    """Docker daemon facts reported for an environment."""

    version: str | None = None
    api_version: str | None = None
    os: str | None = None
    architecture: str | None = None
    containers: int | None = None
    containers_running: int | None = None
    containers_paused: int | None = None
    containers_stopped: int | None = None
    images: int | None = None


class Environment(ResourceRecord):
    """A Docker host registered with the gateway (``local``, ``ssh`` or ``docker_socket``)."""

    name: str | None = None
    type: str | None = None
    host: str | None = None
    port: int | None = None
    auth: EnvironmentAuth | None = None
    labels: dict[str, str] | None = None
    active: bool | None = None
    docker_info: DockerInfo | None = None
    created_at: str | None = None
    updated_at: str | None = None
