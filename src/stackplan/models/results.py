"""Result models for apply/destroy runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional


EntryStatus = Literal["succeeded", "failed", "skipped"]
ApplyStatus = Literal["success", "partial", "failed", "cancelled"]


@dataclass(slots=True)
class EntryResult:
    """Terminal outcome for a single change-set entry."""

    identifier: str
    change_type: str
    status: EntryStatus

    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[dict[str, Any]] = None

    attributes: Optional[dict[str, Any]] = None
    skipped_because: Optional[str] = None


@dataclass(slots=True)
class ApplyResult:
    """
    Aggregate result of applying a change set.

    Status:
        - success: every applied entry succeeded (or nothing to do)
        - partial: some entries succeeded, some failed or were skipped
        - failed: nothing succeeded and at least one entry failed
        - cancelled: the run was cancelled before every entry started
    """

    status: ApplyStatus
    results: list[EntryResult]

    applied_order: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def by_status(self, status: EntryStatus) -> list[str]:
        return [r.identifier for r in self.results if r.status == status]

    @property
    def succeeded(self) -> list[str]:
        return self.by_status("succeeded")

    @property
    def failed(self) -> list[str]:
        return self.by_status("failed")

    @property
    def skipped(self) -> list[str]:
        return self.by_status("skipped")
