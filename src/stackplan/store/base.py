"""Plan store contract."""

from __future__ import annotations

from typing import Protocol

from stackplan.errors import ConflictError
from stackplan.plan import StateRecord


class PlanStore(Protocol):
    """
    Durable home of the last applied StateRecord.

    save() is serialized under a single writer and fails with ConflictError
    when the stored version is not `expected_version`.
    """

    def load(self) -> StateRecord:
        ...

    def save(self, record: StateRecord, *, expected_version: int) -> None:
        ...


def check_version(current: int, expected_version: int, location: str) -> None:
    """Raise ConflictError if another writer saved since `expected_version`."""
    if current != expected_version:
        raise ConflictError(
            "State was modified by another writer",
            details={
                "location": location,
                "expected_version": expected_version,
                "current_version": current,
            },
        )
