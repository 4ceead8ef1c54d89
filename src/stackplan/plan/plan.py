"""Plan model: an ordered, fully resolved list of resource descriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Optional

from stackplan.errors import UnresolvablePropertyError
from stackplan.models import iter_references
from stackplan.util.ids import new_plan_id
from stackplan.util.time import now_utc


@dataclass(frozen=True, slots=True)
class ResourceDescription:
    """
    A synthesized resource.

    `properties` holds concrete JSON values and Deferred tokens
    (``{"$ref": ..., "$attr": ...}``). `depends_on` is the sorted tuple of
    every identifier this resource references.
    """

    identifier: str
    type: str
    properties: dict[str, Any] = field(default_factory=dict, hash=False)
    depends_on: tuple[str, ...] = ()

    def same_as(self, other: "ResourceDescription") -> bool:
        """Structural equality (identifier excluded)."""
        return (
            self.type == other.type
            and self.properties == other.properties
            and self.depends_on == other.depends_on
        )

    def token_references(self) -> list[str]:
        seen: dict[str, None] = {}
        for deferred in iter_references(self.properties):
            seen.setdefault(deferred.ref, None)
        return list(seen)


@dataclass(slots=True)
class Plan:
    """A plan that can be diffed, reviewed and then applied."""

    plan_id: str
    created_at: datetime
    resources: list[ResourceDescription]

    @classmethod
    def empty(cls) -> "Plan":
        """A plan with no resources (the target of destroy)."""
        return cls(plan_id=new_plan_id(), created_at=now_utc(), resources=[])

    @property
    def identifiers(self) -> list[str]:
        return [r.identifier for r in self.resources]

    def get(self, identifier: str) -> Optional[ResourceDescription]:
        for resource in self.resources:
            if resource.identifier == identifier:
                return resource
        return None

    def __contains__(self, identifier: object) -> bool:
        return any(r.identifier == identifier for r in self.resources)

    def __iter__(self) -> Iterator[ResourceDescription]:
        return iter(self.resources)

    def __len__(self) -> int:
        return len(self.resources)

    def validate(self) -> None:
        """
        Check plan invariants.

        Raises:
            UnresolvablePropertyError: if an identifier repeats, or a reference
                does not resolve to an earlier resource of this plan.
        """
        placed: set[str] = set()
        for resource in self.resources:
            if resource.identifier in placed:
                raise UnresolvablePropertyError(
                    f"Plan lists {resource.identifier} twice",
                    details={"identifier": resource.identifier},
                )
            refs = list(resource.depends_on) + resource.token_references()
            for dep in refs:
                if dep not in placed:
                    raise UnresolvablePropertyError(
                        f"{resource.identifier} references {dep}, "
                        "which is not placed before it in the plan",
                        details={"identifier": resource.identifier, "reference": dep},
                    )
            placed.add(resource.identifier)
