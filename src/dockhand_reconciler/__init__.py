"""Reconcile Dockhand-managed Docker infrastructure against a declared desired state."""

__version__ = "0.1.0"
