"""Public store exports for stackplan."""

from __future__ import annotations

from .base import PlanStore, check_version
from .drive_store import DEFAULT_STATE_NAME, DrivePlanStore
from .file_store import FilePlanStore

__all__ = [
    "PlanStore",
    "FilePlanStore",
    "DrivePlanStore",
    "DEFAULT_STATE_NAME",
    "check_version",
]
