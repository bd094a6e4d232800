"""Compose stack data models."""

from __future__ import annotations

from pydantic import BaseModel

from dockhand_reconciler.models.common import ScopedRecord


class ComposeService(BaseModel):
    """A service running inside a compose stack."""

    name: str
    image: str | None = None
    status: str | None = None
    count: int | None = None


class GitAuth(BaseModel):
    """Credentials for a git-backed stack (``ssh`` or ``https``)."""

    type: str | None = None
    token: str | None = None
    key: str | None = None


class GitRepository(BaseModel):
    """Where a git-backed stack reads its compose file from."""

    url: str
    branch: str | None = None
    path: str | None = None
    auth: GitAuth | None = None


class ComposeStack(ScopedRecord):
    """A Docker Compose stack."""

    name: str | None = None
    compose: str | None = None
    status: str | None = None
    desired_status: str | None = None
    services: dict[str, ComposeService] | None = None
    labels: dict[str, str] | None = None
    git_repo: GitRepository | None = None
    auto_sync: bool | None = None
    webhook_token: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
