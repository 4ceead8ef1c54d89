"""Public model exports for stackplan."""

from __future__ import annotations

from .declaration import ResourceDeclaration
from .results import ApplyResult, ApplyStatus, EntryResult, EntryStatus
from .values import (
    Concrete,
    Deferred,
    PropertyValue,
    classify,
    is_token,
    iter_references,
    parse_ref_path,
    ref,
    resolve_value,
    to_plan_value,
)

__all__ = [
    "ResourceDeclaration",
    "Concrete",
    "Deferred",
    "PropertyValue",
    "ref",
    "parse_ref_path",
    "classify",
    "is_token",
    "iter_references",
    "to_plan_value",
    "resolve_value",
    "EntryStatus",
    "ApplyStatus",
    "EntryResult",
    "ApplyResult",
]
