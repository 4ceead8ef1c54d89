"""GraphBuilder: declarations -> immutable ResourceGraph."""

from __future__ import annotations

import logging
from collections import deque
from types import MappingProxyType
from typing import Iterable, Sequence

from stackplan.errors import (
    CyclicDependencyError,
    DuplicateIdentifierError,
    InvalidDeclarationError,
    UnresolvedReferenceError,
)
from stackplan.models import ResourceDeclaration

from .node import ResourceGraph, ResourceNode
from .ordering import find_cycle

logger = logging.getLogger(__name__)


class GraphBuilder:
    """
    Collects resource declarations and builds a validated DAG.

    Validation order:
        1. add(): declaration fields, duplicate identifiers
        2. build(): declared references resolve, then cycle check (DFS)
    """

    def __init__(self) -> None:
        self._nodes: dict[str, ResourceNode] = {}

    def add(self, declaration: ResourceDeclaration) -> ResourceNode:
        """
        Register one declaration.

        Raises:
            InvalidDeclarationError: if required fields are missing/invalid.
            DuplicateIdentifierError: if the identifier is already registered.
        """
        try:
            declaration.validate_required_fields()
        except ValueError as exc:
            raise InvalidDeclarationError(
                "Invalid resource declaration",
                details={"identifier": getattr(declaration, "identifier", None)},
                cause=exc,
            ) from exc

        if declaration.identifier in self._nodes:
            raise DuplicateIdentifierError(
                f"Duplicate identifier: {declaration.identifier}",
                details={"identifier": declaration.identifier},
            )

        node = ResourceNode(
            identifier=declaration.identifier,
            type=declaration.type,
            properties=MappingProxyType(_copy_value(declaration.properties)),
            declared_references=tuple(dict.fromkeys(declaration.depends_on)),
            property_references=tuple(declaration.property_references()),
            index=len(self._nodes),
        )
        self._nodes[node.identifier] = node
        return node

    def add_all(self, declarations: Iterable[ResourceDeclaration]) -> None:
        for declaration in declarations:
            self.add(declaration)

    def build(self) -> ResourceGraph:
        """
        Resolve references and check for cycles.

        Raises:
            UnresolvedReferenceError: if a depends_on entry names an unknown identifier.
            CyclicDependencyError: if the references form a cycle.
        """
        for node in self._nodes.values():
            for dep in node.declared_references:
                if dep not in self._nodes:
                    raise UnresolvedReferenceError(
                        f"{node.identifier} references unknown resource {dep}",
                        details={"identifier": node.identifier, "reference": dep},
                    )

        ids = list(self._nodes)
        cycle = find_cycle(ids, lambda node_id: self._nodes[node_id].references)
        if cycle is not None:
            raise CyclicDependencyError(
                "Cyclic dependency: " + " -> ".join(cycle + cycle[:1]),
                cycle=cycle,
            )

        graph = ResourceGraph(list(self._nodes.values()))
        logger.debug("Built resource graph with %d nodes", len(graph))
        return graph


def build_graph(declarations: Iterable[ResourceDeclaration]) -> ResourceGraph:
    """Build a ResourceGraph from declarations in one call."""
    builder = GraphBuilder()
    builder.add_all(declarations)
    return builder.build()


def prune_declarations(
    declarations: Sequence[ResourceDeclaration],
    removed: Iterable[str],
) -> list[ResourceDeclaration]:
    """
    Drop `removed` declarations and everything depending on them.

    Dependents are followed through both depends_on and property references,
    so the result never holds a reference to a dropped declaration.

    Raises:
        UnresolvedReferenceError: if a name in `removed` is not declared.
    """
    declared = {d.identifier for d in declarations}
    dependents: dict[str, list[str]] = {d.identifier: [] for d in declarations}
    for d in declarations:
        for dep in dict.fromkeys(list(d.depends_on) + d.property_references()):
            if dep in dependents:
                dependents[dep].append(d.identifier)

    dropped: set[str] = set()
    queue: deque[str] = deque()
    for identifier in removed:
        if identifier not in declared:
            raise UnresolvedReferenceError(
                f"Cannot remove undeclared resource {identifier}",
                details={"identifier": identifier},
            )
        queue.append(identifier)

    while queue:
        cur = queue.popleft()
        if cur in dropped:
            continue
        dropped.add(cur)
        queue.extend(dependents[cur])

    return [d for d in declarations if d.identifier not in dropped]


def _copy_value(value):
    if isinstance(value, dict):
        return {key: _copy_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_copy_value(item) for item in value]
    return value
