"""Desired-state reconciliation against the Dockhand gateway."""

from dockhand_reconciler.reconcile.engine import (
    Action,
    Gateway,
    Phase,
    ReconcileEngine,
    ReconcileResult,
)
from dockhand_reconciler.reconcile.policy import POLICIES, FieldPolicy, KindPolicy, policy_for

__all__ = [
    "POLICIES",
    "Action",
    "FieldPolicy",
    "Gateway",
    "KindPolicy",
    "Phase",
    "ReconcileEngine",
    "ReconcileResult",
    "policy_for",
]
