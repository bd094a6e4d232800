"""Container data models."""

from __future__ import annotations

from pydantic import BaseModel

from dockhand_reconciler.models.common import ScopedRecord


class ContainerPort(BaseModel):
    """A published container port."""

    private_port: int
    public_port: int | None = None
    type: str | None = None
    ip: str | None = None


class ContainerMount(BaseModel):
    """A volume or bind mount."""

    source: str
    destination: str
    mode: str | None = None
    type: str | None = None


class Container(ScopedRecord):
    """A Docker container."""

    name: str | None = None
    image: str | None = None
    state: str | None = None
    status: str | None = None
    ports: list[ContainerPort] | None = None
    mounts: list[ContainerMount] | None = None
    env: list[str] | None = None
    labels: dict[str, str] | None = None
    command: str | None = None
    args: list[str] | None = None
    memory: int | None = None
    cpus: float | None = None
    restart_policy: str | None = None
