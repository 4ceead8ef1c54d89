"""Public diff exports for stackplan."""

from __future__ import annotations

from .change_set import MISSING, ChangeSet, ChangeSetEntry, ChangeType, PropertyDelta
from .engine import diff_plans, property_deltas
from .ordering import build_apply_order, entry_dependencies

__all__ = [
    "ChangeType",
    "ChangeSet",
    "ChangeSetEntry",
    "PropertyDelta",
    "MISSING",
    "diff_plans",
    "property_deltas",
    "build_apply_order",
    "entry_dependencies",
]
