"""Image and image pull data models."""

from __future__ import annotations

from pydantic import BaseModel

from dockhand_reconciler.models.common import ScopedRecord


class Image(ScopedRecord):
    """An image already present in an environment.

    Images are adopted by ``id`` rather than created; use
    :class:`ImagePull` to bring a new image onto a host.
    """

    repo_tags: list[str] | None = None
    repo_digests: list[str] | None = None
    size: int | None = None
    created: str | None = None
    labels: dict[str, str] | None = None
    architecture: str | None = None
    os: str | None = None


class ImageAuth(BaseModel):
    """Registry credentials sent with a pull."""

    username: str
    password: str


class ImagePullRequest(BaseModel):
    """Body of ``POST /environments/{id}/images/pull``."""

    image: str
    registry: str | None = None
    auth: ImageAuth | None = None


class ImagePull(ScopedRecord):
    """A pull of ``image`` onto an environment."""

    image: str | None = None
    registry: str | None = None
    auth_username: str | None = None
    auth_password: str | None = None
    status: str | None = None
    pulled_at: str | None = None
    image_id: str | None = None

    def pull_request(self) -> ImagePullRequest:
        auth = None
        if self.auth_username and self.auth_password:
            auth = ImageAuth(username=self.auth_username, password=self.auth_password)
        return ImagePullRequest(
            image=self.image or "",
            registry=self.registry or None,
            auth=auth,
        )

    def pull_id(self) -> str:
        return f"{self.image}@{self.environment_id}"
