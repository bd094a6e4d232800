"""Per-kind field classification driving create, update, replace and merge.

Each kind maps every record field to a combination of :class:`FieldPolicy`
flags. Nested secrets that live inside an optional object (git credentials,
environment credentials) are listed separately as dotted paths.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from dockhand_reconciler.client.errors import InvalidRecordError
from dockhand_reconciler.models import (
    ComposeStack,
    Container,
    Environment,
    Image,
    ImagePull,
    Kind,
    Network,
    ResourceRecord,
    Volume,
)

REDACTED = "***"


class FieldPolicy(enum.Flag):
    REQUIRED = enum.auto()
    OPTIONAL = enum.auto()
    COMPUTED = enum.auto()
    SENSITIVE = enum.auto()
    IMMUTABLE = enum.auto()


R = FieldPolicy.REQUIRED
O = FieldPolicy.OPTIONAL  # noqa: E741
C = FieldPolicy.COMPUTED
S = FieldPolicy.SENSITIVE
I = FieldPolicy.IMMUTABLE  # noqa: E741


class ChangeStrategy(str, enum.Enum):
    """What an update does with a difference in a non-immutable field."""

    UPDATE = "update"  # PUT the changed fields
    REFRESH = "refresh"  # no mutation endpoint: re-read and report drift


class CreateMode(str, enum.Enum):
    POST = "post"
    ADOPT = "adopt"  # object must already exist; create reads it by id
    PULL = "pull"  # create issues an image pull


class ReadMode(str, enum.Enum):
    GET = "get"
    TAG_LOOKUP = "tag_lookup"  # find the image carrying the pulled tag


def has_value(value: Any) -> bool:
    """True for anything but None and empty strings/containers."""
    if value is None:
        return False
    if isinstance(value, (str, list, dict, tuple, set)):
        return len(value) > 0
    return True


def get_path(data: Mapping[str, Any] | None, path: str) -> Any:
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def set_path(data: dict[str, Any], path: str, value: Any) -> bool:
    """Set a dotted path, creating leaf-level dicts only under an existing root.

    Returns False when the top-level object is absent, in which case
    nothing is written.
    """
    parts = path.split(".")
    current = data.get(parts[0])
    if not isinstance(current, dict):
        return False
    for part in parts[1:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    current[parts[-1]] = value
    return True


@dataclass(frozen=True)
class KindPolicy:
    """Static reconciliation contract of one resource kind."""

    kind: Kind
    model: type[ResourceRecord]
    fields: Mapping[str, FieldPolicy]
    on_change: ChangeStrategy = ChangeStrategy.UPDATE
    create_mode: CreateMode = CreateMode.POST
    read_mode: ReadMode = ReadMode.GET
    sensitive_paths: tuple[str, ...] = ()
    scoped: bool = True
    actions: tuple[str, ...] = field(default_factory=tuple)

    def flags(self, name: str) -> FieldPolicy:
        return self.fields[name]

    def names_with(self, flag: FieldPolicy) -> frozenset[str]:
        return frozenset(n for n, f in self.fields.items() if f & flag)

    @property
    def computed(self) -> frozenset[str]:
        return self.names_with(C)

    @property
    def sensitive(self) -> frozenset[str]:
        return self.names_with(S)

    @property
    def immutable(self) -> frozenset[str]:
        return self.names_with(I)

    @property
    def required(self) -> frozenset[str]:
        return self.names_with(R)

    @property
    def mutable(self) -> frozenset[str]:
        """Fields an in-place update may send."""
        if self.on_change is ChangeStrategy.REFRESH:
            return frozenset()
        return frozenset(
            n for n, f in self.fields.items()
            if f & (R | O) and not f & (C | I) and n != "id"
        )

    @property
    def wire_fields(self) -> frozenset[str]:
        """Fields that belong in a create body (scope and id travel in the path)."""
        return frozenset(
            n for n, f in self.fields.items()
            if f & (R | O) and not f & C and n not in ("id", "environment_id")
        )

    def validate(self, record: ResourceRecord) -> None:
        if not isinstance(record, self.model):
            raise InvalidRecordError(
                f"expected a {self.model.__name__} record for {self.kind.value}, "
                f"got {type(record).__name__}"
            )
        missing = sorted(n for n in self.required if not has_value(getattr(record, n)))
        if missing:
            raise InvalidRecordError(
                f"{self.kind.value} is missing required field(s): {', '.join(missing)}"
            )

    def payload(
        self, record: ResourceRecord, only: frozenset[str] | set[str] | None = None,
    ) -> dict[str, Any]:
        """Wire body for *record*: no computed fields, no id, no unset values."""
        names = set(self.wire_fields)
        if only is not None:
            names &= set(only)
        if not names:
            return {}
        return record.model_dump(include=names, exclude_none=True, mode="json")

    def without_computed(self, record: ResourceRecord) -> ResourceRecord:
        """Copy of a desired record with caller-supplied computed values dropped."""
        data = record.model_dump(exclude=set(self.computed))
        return self.model.model_validate(data)

    def redact(self, record: ResourceRecord) -> dict[str, Any]:
        """JSON-ready view of *record* with secrets masked."""
        data = record.model_dump(mode="json")
        for name in self.sensitive:
            if has_value(data.get(name)):
                data[name] = REDACTED
        for path in self.sensitive_paths:
            if has_value(get_path(data, path)):
                set_path(data, path, REDACTED)
        return data


_SCOPE = {"environment_id": R | I}

POLICIES: dict[Kind, KindPolicy] = {
    Kind.CONTAINER: KindPolicy(
        kind=Kind.CONTAINER,
        model=Container,
        fields={
            "id": C,
            **_SCOPE,
            "name": R,
            "image": R,
            "state": C,
            "status": C,
            "ports": O,
            "mounts": O,
            "env": O,
            "labels": O,
            "command": O,
            "args": O,
            "memory": O,
            "cpus": O,
            "restart_policy": O,
        },
        actions=("start", "stop", "restart", "pause", "unpause"),
    ),
    Kind.COMPOSE_STACK: KindPolicy(
        kind=Kind.COMPOSE_STACK,
        model=ComposeStack,
        fields={
            "id": C,
            **_SCOPE,
            "name": R,
            "compose": R,
            "status": C,
            "desired_status": O,
            "services": C,
            "labels": O,
            "git_repo": O,
            "auto_sync": O,
            "webhook_token": C | S,
            "created_at": C,
            "updated_at": C,
        },
        sensitive_paths=("git_repo.auth.token", "git_repo.auth.key"),
        actions=("start", "stop"),
    ),
    Kind.ENVIRONMENT: KindPolicy(
        kind=Kind.ENVIRONMENT,
        model=Environment,
        fields={
            "id": C,
            "name": R,
            "type": R,
            "host": O,
            "port": O,
            "auth": O,
            "labels": O,
            "active": C,
            "docker_info": C,
            "created_at": C,
            "updated_at": C,
        },
        sensitive_paths=("auth.password", "auth.key"),
        scoped=False,
    ),
    Kind.NETWORK: KindPolicy(
        kind=Kind.NETWORK,
        model=Network,
        fields={
            "id": C,
            **_SCOPE,
            "name": R,
            "type": O,
            "driver": O,
            "scope": O,
            "labels": O,
            "ipam": O,
            "containers": C,
        },
        on_change=ChangeStrategy.REFRESH,
    ),
    Kind.VOLUME: KindPolicy(
        kind=Kind.VOLUME,
        model=Volume,
        fields={
            "id": C,
            **_SCOPE,
            "name": R,
            "driver": O,
            "mountpoint": C,
            "labels": O,
            "options": O,
            "size": C,
            "containers": C,
        },
        on_change=ChangeStrategy.REFRESH,
    ),
    Kind.IMAGE: KindPolicy(
        kind=Kind.IMAGE,
        model=Image,
        fields={
            "id": R | I,
            **_SCOPE,
            "repo_tags": C,
            "repo_digests": C,
            "size": C,
            "created": C,
            "labels": C,
            "architecture": C,
            "os": C,
        },
        on_change=ChangeStrategy.REFRESH,
        create_mode=CreateMode.ADOPT,
    ),
    Kind.IMAGE_PULL: KindPolicy(
        kind=Kind.IMAGE_PULL,
        model=ImagePull,
        fields={
            "id": C,
            **_SCOPE,
            "image": R | I,
            "registry": O | I,
            "auth_username": O,
            "auth_password": O | S,
            "status": C,
            "pulled_at": C,
            "image_id": C,
        },
        on_change=ChangeStrategy.REFRESH,
        create_mode=CreateMode.PULL,
        read_mode=ReadMode.TAG_LOOKUP,
    ),
}


def policy_for(kind: Kind | str) -> KindPolicy:
    return POLICIES[Kind(kind)]
