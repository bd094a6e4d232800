"""Fold a freshly observed record into the previously persisted one.

Precedence per field:

* addressing fields (``id``, ``environment_id``) keep the persisted value
  once it is set;
* sensitive fields keep the persisted value, since the gateway never
  echoes secrets back; the observed value is only taken when nothing was
  persisted yet (a webhook token issued on create);
* computed fields always take the observed value;
* everything else takes the observed value when the response carried the
  field at all. A field the response omitted keeps its persisted value:
  omission is not erasure.
"""

from __future__ import annotations

from typing import Any

from dockhand_reconciler.models.common import ResourceRecord
from dockhand_reconciler.reconcile.policy import (
    FieldPolicy,
    KindPolicy,
    get_path,
    has_value,
    set_path,
)

_ADDRESS_FIELDS = ("id", "environment_id")


def drift_merge(
    policy: KindPolicy, observed: ResourceRecord, persisted: ResourceRecord,
) -> ResourceRecord:
    present = observed.model_fields_set
    seen = observed.model_dump()
    prior = persisted.model_dump()
    merged: dict[str, Any] = {}

    for name, flags in policy.fields.items():
        if name in _ADDRESS_FIELDS:
            merged[name] = prior.get(name) or seen.get(name)
        elif flags & FieldPolicy.SENSITIVE:
            merged[name] = prior[name] if has_value(prior[name]) else seen[name]
        elif flags & FieldPolicy.COMPUTED:
            merged[name] = seen[name]
        elif name in present:
            merged[name] = seen[name]
        else:
            merged[name] = prior[name]

    for path in policy.sensitive_paths:
        secret = get_path(prior, path)
        if has_value(secret):
            # Only restored while the enclosing object still exists.
            set_path(merged, path, secret)

    return policy.model.model_validate(merged)
