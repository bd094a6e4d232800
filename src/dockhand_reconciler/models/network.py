"""Network and volume data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from dockhand_reconciler.models.common import ScopedRecord


class NetworkIPAMConfig(BaseModel):
    """One IPAM pool."""

    subnet: str | None = None
    gateway: str | None = None


class NetworkIPAM(BaseModel):
    """IP address management settings of a network."""

    driver: str | None = None
    config: list[NetworkIPAMConfig] = Field(default_factory=list)
    options: dict[str, str] | None = None


class Network(ScopedRecord):
    """A Docker network (``bridge``, ``overlay``, ``host`` or ``null``)."""

    name: str | None = None
    type: str | None = None
    driver: str | None = None
    scope: str | None = None
    labels: dict[str, str] | None = None
    ipam: NetworkIPAM | None = None
    containers: dict[str, Any] | None = None


class Volume(ScopedRecord):
    """A Docker volume."""

    name: str | None = None
    driver: str | None = None
    mountpoint: str | None = None
    labels: dict[str, str] | None = None
    options: dict[str, str] | None = None
    size: int | None = None
    containers: list[str] | None = None
