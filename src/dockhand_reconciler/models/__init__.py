"""Pydantic records for the Dockhand API."""

from dockhand_reconciler.models.common import Kind, ResourceRecord, ScopedRecord
from dockhand_reconciler.models.compose import (
    ComposeService,
    ComposeStack,
    GitAuth,
    GitRepository,
)
from dockhand_reconciler.models.container import Container, ContainerMount, ContainerPort
from dockhand_reconciler.models.environment import DockerInfo, Environment, EnvironmentAuth
from dockhand_reconciler.models.image import Image, ImageAuth, ImagePull, ImagePullRequest
from dockhand_reconciler.models.network import Network, NetworkIPAM, NetworkIPAMConfig, Volume

__all__ = [
    "ComposeService",
    "ComposeStack",
    "Container",
    "ContainerMount",
    "ContainerPort",
    "DockerInfo",
    "Environment",
    "EnvironmentAuth",
    "GitAuth",
    "GitRepository",
    "Image",
    "ImageAuth",
    "ImagePull",
    "ImagePullRequest",
    "Kind",
    "Network",
    "NetworkIPAM",
    "NetworkIPAMConfig",
    "ResourceRecord",
    "ScopedRecord",
    "Volume",
]
