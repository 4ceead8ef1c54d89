"""Resource node and immutable resource graph."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Sequence


@dataclass(frozen=True, slots=True)
class ResourceNode:
    """
    A registered resource inside a ResourceGraph.

    Notes:
        - `declared_references` come from the declaration's `depends_on`.
        - `property_references` are the targets of Deferred values found in
          `properties`; they may name nodes absent from the graph, which the
          synthesizer reports as UnresolvablePropertyError.
    """

    identifier: str
    type: str
    properties: Mapping[str, Any]
    declared_references: tuple[str, ...]
    property_references: tuple[str, ...]
    index: int

    @property
    def references(self) -> tuple[str, ...]:
        """All outgoing references, declared first, without duplicates."""
        return tuple(dict.fromkeys(self.declared_references + self.property_references))


class ResourceGraph:
    """Immutable DAG of ResourceNodes, kept in declaration order."""

    def __init__(self, nodes: Sequence[ResourceNode]) -> None:
        self._nodes: tuple[ResourceNode, ...] = tuple(nodes)
        self._by_id: Mapping[str, ResourceNode] = MappingProxyType(
            {node.identifier: node for node in self._nodes}
        )

        dependents: dict[str, list[str]] = {node.identifier: [] for node in self._nodes}
        for node in self._nodes:
            for dep in node.references:
                if dep in dependents:
                    dependents[dep].append(node.identifier)
        self._dependents: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {key: tuple(value) for key, value in dependents.items()}
        )

    # ----------------------------
    # Read APIs
    # ----------------------------
    @property
    def nodes(self) -> tuple[ResourceNode, ...]:
        return self._nodes

    @property
    def identifiers(self) -> list[str]:
        return [node.identifier for node in self._nodes]

    def get(self, identifier: str) -> Optional[ResourceNode]:
        return self._by_id.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._by_id

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def dependencies_of(self, identifier: str) -> tuple[str, ...]:
        """References of `identifier` that resolve to nodes in this graph."""
        node = self._by_id[identifier]
        return tuple(dep for dep in node.references if dep in self._by_id)

    def dependents_of(self, identifier: str) -> tuple[str, ...]:
        return self._dependents.get(identifier, ())

    def transitive_dependents(self, identifiers: Sequence[str]) -> set[str]:
        """Every node depending (directly or transitively) on any of `identifiers`."""
        found: set[str] = set()
        stack = list(identifiers)
        while stack:
            for dependent in self.dependents_of(stack.pop()):
                if dependent not in found:
                    found.add(dependent)
                    stack.append(dependent)
        return found
