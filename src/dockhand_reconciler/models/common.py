"""Shared record types."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Kind(str, Enum):
    """Resource kinds managed through the gateway."""

    CONTAINER = "container"
    COMPOSE_STACK = "compose_stack"
    ENVIRONMENT = "environment"
    NETWORK = "network"
    VOLUME = "volume"
    IMAGE = "image"
    IMAGE_PULL = "image_pull"


class ResourceRecord(BaseModel):
    """Desired or observed state of one remote object.

    Every field has a default so partial gateway responses still parse.
    Which fields a response actually carried is available through
    ``model_fields_set``.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = ""

    @property
    def env_id(self) -> str:
        """Environment the object lives in (empty for unscoped kinds)."""
        return ""

    @property
    def exists(self) -> bool:
        return bool(self.id)

    def voided(self) -> ResourceRecord:
        """Copy of this record that no longer points at a remote object."""
        return self.model_copy(update={"id": ""})


class ScopedRecord(ResourceRecord):
    """A record living inside a Docker environment."""

    environment_id: str | None = None

    @property
    def env_id(self) -> str:
        return self.environment_id or ""
