"""Change set model produced by the diff engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from stackplan.plan import ResourceDescription


class ChangeType(str, Enum):
    """Classification of one resource between two plans."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


class _Missing:
    """Marks the absent side of a PropertyDelta."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True, slots=True)
class PropertyDelta:
    """Before/after values of one changed property (MISSING when absent)."""

    name: str
    before: Any = MISSING
    after: Any = MISSING

    @property
    def added(self) -> bool:
        return self.before is MISSING

    @property
    def removed(self) -> bool:
        return self.after is MISSING


@dataclass(slots=True)
class ChangeSetEntry:
    """
    One resource's change.

    Notes:
        - ADDED: previous is None, new is set.
        - REMOVED: previous is set, new is None.
        - MODIFIED/UNCHANGED: both are set.
    """

    identifier: str
    change_type: ChangeType
    previous: Optional[ResourceDescription] = None
    new: Optional[ResourceDescription] = None
    deltas: list[PropertyDelta] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.previous is None and self.new is None:
            raise ValueError("ChangeSetEntry needs a previous or a new description")
        if self.change_type is ChangeType.ADDED and self.previous is not None:
            raise ValueError("ADDED entry must not have a previous description")
        if self.change_type is ChangeType.REMOVED and self.new is not None:
            raise ValueError("REMOVED entry must not have a new description")
        if self.change_type in (ChangeType.MODIFIED, ChangeType.UNCHANGED) and (
            self.previous is None or self.new is None
        ):
            raise ValueError(f"{self.change_type.value} entry needs both descriptions")

    @property
    def changed_properties(self) -> list[str]:
        return [d.name for d in self.deltas]

    @property
    def type_changed(self) -> bool:
        return (
            self.previous is not None
            and self.new is not None
            and self.previous.type != self.new.type
        )

    @property
    def dependencies_changed(self) -> bool:
        return (
            self.previous is not None
            and self.new is not None
            and self.previous.depends_on != self.new.depends_on
        )

    @property
    def resource_type(self) -> str:
        desc = self.new if self.new is not None else self.previous
        assert desc is not None
        return desc.type


@dataclass(slots=True)
class ChangeSet:
    """
    Ordered entries for safe application.

    Order: added/modified (forward dependency order), then removed (reverse
    dependency order), then unchanged.
    """

    entries: list[ChangeSetEntry]
    previous_plan_id: Optional[str] = None
    new_plan_id: Optional[str] = None
    new_order: list[str] = field(default_factory=list)

    @property
    def changes(self) -> list[ChangeSetEntry]:
        """Entries that require a remote operation."""
        return [e for e in self.entries if e.change_type is not ChangeType.UNCHANGED]

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def get(self, identifier: str) -> Optional[ChangeSetEntry]:
        for entry in self.entries:
            if entry.identifier == identifier:
                return entry
        return None

    def of_type(self, change_type: ChangeType) -> list[ChangeSetEntry]:
        return [e for e in self.entries if e.change_type is change_type]

    def summary(self) -> dict[str, int]:
        counts = {t.value: 0 for t in ChangeType}
        for entry in self.entries:
            counts[entry.change_type.value] += 1
        return counts

    def __iter__(self) -> Iterator[ChangeSetEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
