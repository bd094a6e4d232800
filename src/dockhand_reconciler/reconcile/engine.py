"""Reconciliation engine: one lifecycle phase per call, for any kind.

The engine is stateless: every call is a function of the kind, the phase,
the desired and persisted records, and whatever the gateway answers. It
issues at most one gateway call per phase (two for a replace) and never
retries; the caller decides what to do with a failure.
"""

from __future__ import annotations

import enum
import json
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, cast

from pydantic import ValidationError

from dockhand_reconciler.client.errors import (
    DockhandError,
    InvalidRecordError,
    MalformedResponse,
    NotFoundError,
    PartialReplaceFailure,
    RemoteError,
)
from dockhand_reconciler.models import ImagePull, Kind, ResourceRecord
from dockhand_reconciler.reconcile.merge import drift_merge
from dockhand_reconciler.reconcile.planner import Decision, UpdatePlan, changed_fields, plan_update
from dockhand_reconciler.reconcile.policy import POLICIES, CreateMode, KindPolicy, ReadMode

logger = logging.getLogger(__name__)


class Gateway(Protocol):
    """Remote API operations the engine relies on."""

    def list(self, kind: Kind, env_id: str = "") -> list[dict[str, Any]]: ...

    def get(self, kind: Kind, env_id: str, object_id: str) -> dict[str, Any]: ...

    def create(self, kind: Kind, env_id: str, body: dict[str, Any]) -> dict[str, Any]: ...

    def update(
        self, kind: Kind, env_id: str, object_id: str, body: dict[str, Any],
    ) -> dict[str, Any]: ...

    def delete(self, kind: Kind, env_id: str, object_id: str) -> None: ...

    def pull(self, env_id: str, body: dict[str, Any]) -> None: ...


class Phase(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Action(str, enum.Enum):
    """What a reconcile call did."""

    CREATED = "created"
    READ = "read"
    UPDATED = "updated"
    REPLACED = "replaced"
    REFRESHED = "refreshed"  # no mutation endpoint; re-read, drift reported
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    REMOVED = "removed"  # vanished upstream; drop the record from state


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one phase.

    ``record`` is the value to persist, or None when the record must be
    dropped (after a delete, or when a read found nothing upstream).
    ``drift`` names the fields that differed between desired and
    persisted state.
    """

    kind: Kind
    action: Action
    record: ResourceRecord | None
    drift: tuple[str, ...] = ()


def _describe(kind: Kind, record: ResourceRecord) -> str:
    env = record.env_id
    return f"{kind.value} {record.id or '<new>'}" + (f" in {env}" if env else "")


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class ReconcileEngine:
    """Drive create/read/update/delete for every kind from its policy."""

    def __init__(
        self, gateway: Gateway, policies: Mapping[Kind, KindPolicy] | None = None,
    ) -> None:
        self.gateway = gateway
        self.policies = policies or POLICIES

    def policy(self, kind: Kind | str) -> KindPolicy:
        return self.policies[Kind(kind)]

    def reconcile(
        self,
        kind: Kind | str,
        phase: Phase | str,
        desired: ResourceRecord | None = None,
        persisted: ResourceRecord | None = None,
    ) -> ReconcileResult:
        phase = Phase(phase)
        if phase is Phase.CREATE:
            return self.create(kind, _need(desired, "desired", phase))
        if phase is Phase.READ:
            return self.read(kind, _need(persisted, "persisted", phase))
        if phase is Phase.UPDATE:
            return self.update(
                kind,
                _need(desired, "desired", phase),
                _need(persisted, "persisted", phase),
            )
        return self.delete(kind, _need(persisted, "persisted", phase))

    # -- phases ----------------------------------------------------------

    def create(self, kind: Kind | str, desired: ResourceRecord) -> ReconcileResult:
        policy = self.policy(kind)
        policy.validate(desired)
        base = policy.without_computed(desired)
        with self._operation("create", policy.kind):
            observed = self._remote_create(policy, base)
        record = drift_merge(policy, observed, base)
        if not record.exists:
            logger.warning("Gateway returned no id for the new %s", policy.kind.value)
        logger.info("Created %s", _describe(policy.kind, record))
        return ReconcileResult(policy.kind, Action.CREATED, record)

    def read(self, kind: Kind | str, persisted: ResourceRecord) -> ReconcileResult:
        policy = self.policy(kind)
        if not persisted.exists:
            logger.info("%s has no id; dropping it from state", policy.kind.value)
            return ReconcileResult(policy.kind, Action.REMOVED, None)
        try:
            with self._operation("read", policy.kind):
                observed = self._remote_get(policy, persisted)
        except NotFoundError:
            logger.info("%s no longer exists upstream", _describe(policy.kind, persisted))
            return ReconcileResult(policy.kind, Action.REMOVED, None)
        record = drift_merge(policy, observed, persisted)
        logger.debug("Read %s", _describe(policy.kind, record))
        return ReconcileResult(policy.kind, Action.READ, record)

    def update(
        self, kind: Kind | str, desired: ResourceRecord, persisted: ResourceRecord,
    ) -> ReconcileResult:
        policy = self.policy(kind)
        policy.validate(desired)
        if not persisted.exists:
            raise InvalidRecordError(
                f"cannot update {policy.kind.value}: persisted record has no id"
            )
        plan = plan_update(policy, desired, persisted)
        logger.debug(
            "Update plan for %s: %s %s",
            _describe(policy.kind, persisted), plan.decision.value, list(plan.changed),
        )
        if plan.decision is Decision.NOOP:
            return ReconcileResult(policy.kind, Action.UNCHANGED, persisted)
        if plan.decision is Decision.REPLACE:
            return self._replace(policy, desired, persisted, plan)
        if plan.decision is Decision.REFRESH:
            return self._refresh(policy, desired, persisted)

        with self._operation("update", policy.kind):
            data = self.gateway.update(policy.kind, persisted.env_id, persisted.id, plan.payload)
            observed = _observe(policy, data)
        record = drift_merge(policy, observed, self._carry_forward(policy, desired, persisted))
        logger.info("Updated %s (%s)", _describe(policy.kind, record), ", ".join(plan.changed))
        return ReconcileResult(policy.kind, Action.UPDATED, record, plan.changed)

    def delete(self, kind: Kind | str, persisted: ResourceRecord) -> ReconcileResult:
        policy = self.policy(kind)
        if persisted.exists:
            try:
                with self._operation("delete", policy.kind):
                    self.gateway.delete(policy.kind, persisted.env_id, persisted.id)
            except NotFoundError:
                logger.info("%s was already gone", _describe(policy.kind, persisted))
            else:
                logger.info("Deleted %s", _describe(policy.kind, persisted))
        return ReconcileResult(policy.kind, Action.DELETED, None)

    def locate(
        self, kind: Kind | str, desired: ResourceRecord, persisted: ResourceRecord,
    ) -> ReconcileResult:
        """Look for the object a failed create may still have left upstream.

        *persisted* is a record whose id was lost (a replace deleted the old
        object, then the create failed). Adopted images and image pulls are
        addressed by what *desired* asks for; other kinds are matched by
        name in the desired environment. A match is merged into *persisted*
        and returned as READ; no match is REMOVED.
        """
        policy = self.policy(kind)
        if policy.create_mode is CreateMode.ADOPT:
            return self.read(policy.kind, persisted.model_copy(
                update={"id": desired.id, "environment_id": desired.env_id or None},
            ))
        if policy.read_mode is ReadMode.TAG_LOOKUP:
            pull, prior = cast(ImagePull, desired), cast(ImagePull, persisted)
            return self.read(policy.kind, prior.model_copy(update={
                "id": pull.pull_id(),
                "environment_id": pull.environment_id,
                "image": pull.image,
                "status": prior.status or "success",
            }))

        name = getattr(desired, "name", None) or getattr(persisted, "name", None)
        if not name:
            logger.warning(
                "%s has no id and no name to look it up by; treating it as absent",
                policy.kind.value,
            )
            return ReconcileResult(policy.kind, Action.REMOVED, None)
        with self._operation("list", policy.kind):
            candidates = [
                item for item in self.gateway.list(policy.kind, desired.env_id)
                if item.get("name") == name
            ]
            if not candidates:
                logger.info("No %s named %s upstream", policy.kind.value, name)
                return ReconcileResult(policy.kind, Action.REMOVED, None)
            if len(candidates) > 1:
                logger.warning(
                    "%d %ss named %s upstream; adopting %s",
                    len(candidates), policy.kind.value, name, candidates[0].get("id"),
                )
            observed = _observe(policy, candidates[0])
        if desired.env_id and "environment_id" in policy.fields:
            persisted = persisted.model_copy(update={"environment_id": desired.env_id})
        record = drift_merge(policy, observed, persisted)
        logger.info("Found %s left by an earlier create", _describe(policy.kind, record))
        return ReconcileResult(policy.kind, Action.READ, record)

    # -- update paths ----------------------------------------------------

    def _replace(
        self,
        policy: KindPolicy,
        desired: ResourceRecord,
        persisted: ResourceRecord,
        plan: UpdatePlan,
    ) -> ReconcileResult:
        logger.info(
            "Replacing %s: immutable field(s) changed: %s",
            _describe(policy.kind, persisted),
            ", ".join(sorted(policy.immutable.intersection(plan.changed))),
        )
        # A failed delete leaves the old object and record untouched.
        self.delete(policy.kind, persisted)
        try:
            created = self.create(policy.kind, desired)
        except DockhandError as exc:
            raise PartialReplaceFailure(policy.kind.value, persisted.voided(), exc) from exc
        return ReconcileResult(policy.kind, Action.REPLACED, created.record, plan.changed)

    def _refresh(
        self, policy: KindPolicy, desired: ResourceRecord, persisted: ResourceRecord,
    ) -> ReconcileResult:
        result = self.read(policy.kind, persisted)
        if result.record is None:
            return result
        drift = changed_fields(policy, desired, result.record)
        if drift:
            logger.info(
                "%s differs from desired configuration in %s; %s has no update "
                "endpoint, keeping observed state",
                _describe(policy.kind, result.record), ", ".join(drift), policy.kind.value,
            )
        return ReconcileResult(policy.kind, Action.REFRESHED, result.record, drift)

    @staticmethod
    def _carry_forward(
        policy: KindPolicy, desired: ResourceRecord, persisted: ResourceRecord,
    ) -> ResourceRecord:
        """The persisted record with every field the desired record sets laid over it."""
        data = persisted.model_dump()
        for name, value in desired.model_dump().items():
            if value is not None and name not in policy.computed and name != "id":
                data[name] = value
        return policy.model.model_validate(data)

    # -- gateway calls ---------------------------------------------------

    def _remote_create(self, policy: KindPolicy, desired: ResourceRecord) -> ResourceRecord:
        env_id = desired.env_id
        if policy.create_mode is CreateMode.ADOPT:
            data = self.gateway.get(policy.kind, env_id, desired.id)
        elif policy.create_mode is CreateMode.PULL:
            pull = cast(ImagePull, desired)
            self.gateway.pull(env_id, pull.pull_request().model_dump(exclude_none=True))
            data = {"id": pull.pull_id(), "status": "success", "pulled_at": _utcnow()}
        else:
            data = self.gateway.create(policy.kind, env_id, policy.payload(desired))
        return _observe(policy, data)

    def _remote_get(self, policy: KindPolicy, persisted: ResourceRecord) -> ResourceRecord:
        if policy.read_mode is ReadMode.TAG_LOOKUP:
            return self._lookup_pulled_image(policy, persisted)
        data = self.gateway.get(policy.kind, persisted.env_id, persisted.id)
        return _observe(policy, data)

    def _lookup_pulled_image(
        self, policy: KindPolicy, persisted: ResourceRecord,
    ) -> ResourceRecord:
        pull = cast(ImagePull, persisted)
        for image in self.gateway.list(Kind.IMAGE, pull.env_id):
            if pull.image in (image.get("repo_tags") or []):
                return _observe(policy, {
                    "id": pull.id,
                    "status": pull.status,
                    "pulled_at": pull.pulled_at,
                    "image_id": image.get("id"),
                })
        raise NotFoundError(404, f"no image tagged {pull.image}")

    @contextmanager
    def _operation(self, operation: str, kind: Kind) -> Iterator[None]:
        try:
            yield
        except RemoteError as exc:
            exc.bind(operation, kind.value)
            raise


def _observe(policy: KindPolicy, data: Any) -> ResourceRecord:
    """Validate a 2xx response body into the kind's record."""
    try:
        return policy.model.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponse(
            json.dumps(data, default=str), f"{exc.error_count()} invalid field(s)",
        ) from exc


def _need(record: ResourceRecord | None, which: str, phase: Phase) -> ResourceRecord:
    if record is None:
        raise InvalidRecordError(f"{phase.value} needs a {which} record")
    return record
