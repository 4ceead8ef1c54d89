"""Resource declaration model (input to the graph builder)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .values import iter_references

_FORBIDDEN_ID_CHARS: frozenset[str] = frozenset(".$/")


@dataclass(slots=True)
class ResourceDeclaration:
    """
    A single declared infrastructure unit.

    `properties` maps property names to plain values, nested containers, or
    Deferred references (see `stackplan.models.values.ref`). `depends_on`
    lists explicit references that carry no property value.
    """

    identifier: str
    type: str
    properties: dict[str, Any] = field(default_factory=dict)
    depends_on: list[str] = field(default_factory=list)

    def validate_required_fields(self) -> None:
        """Validate required fields. Raises ValueError."""
        _require(self.identifier, "identifier")
        _require(self.type, "type")

        if any(c.isspace() or c in _FORBIDDEN_ID_CHARS for c in self.identifier):
            raise ValueError(f"Invalid identifier: {self.identifier!r}")
        if not isinstance(self.properties, dict):
            raise ValueError("properties must be a mapping")
        for name in self.properties:
            _require(name, "property name")
        for dep in self.depends_on:
            _require(dep, "depends_on entry")

    def property_references(self) -> list[str]:
        """Identifiers referenced from property values, first-seen order."""
        seen: dict[str, None] = {}
        for value in self.properties.values():
            for deferred in iter_references(value):
                seen.setdefault(deferred.ref, None)
        return list(seen)


def _require(value: object, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Missing required field: {field_name}")
