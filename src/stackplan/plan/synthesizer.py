"""Synthesizer: ResourceGraph -> Plan in dependency order."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from stackplan.errors import (
    CyclicDependencyError,
    InvalidDeclarationError,
    UnresolvablePropertyError,
)
from stackplan.graph import ResourceGraph, find_cycle, topological_order
from stackplan.models import to_plan_value
from stackplan.util.ids import new_plan_id
from stackplan.util.time import now_utc

from .plan import Plan, ResourceDescription

logger = logging.getLogger(__name__)


def synthesize(
    graph: ResourceGraph,
    *,
    plan_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Plan:
    """
    Build a Plan from a graph.

    Rules:
        - Every resource appears after all resources it references.
        - Ties among ready resources are broken by declaration order.
        - Plain values stay concrete; Deferred values become tokens.

    Raises:
        UnresolvablePropertyError: if a property references a node not in the graph.
        InvalidDeclarationError: if a property value is not JSON-compatible.
    """
    for node in graph:
        for target in node.property_references:
            if target not in graph:
                raise UnresolvablePropertyError(
                    f"{node.identifier} has a property referencing unknown resource {target}",
                    details={"identifier": node.identifier, "reference": target},
                )

    try:
        order = topological_order(graph.identifiers, graph.dependencies_of)
    except ValueError as exc:
        cycle = find_cycle(graph.identifiers, graph.dependencies_of) or []
        raise CyclicDependencyError(
            "Graph is not acyclic", cycle=cycle, cause=exc
        ) from exc

    resources: list[ResourceDescription] = []
    for identifier in order:
        node = graph.get(identifier)
        assert node is not None
        try:
            properties = to_plan_value(dict(node.properties))
        except ValueError as exc:
            raise InvalidDeclarationError(
                f"Property of {identifier} cannot be serialized",
                details={"identifier": identifier},
                cause=exc,
            ) from exc

        resources.append(
            ResourceDescription(
                identifier=identifier,
                type=node.type,
                properties=properties,
                depends_on=tuple(sorted(node.references)),
            )
        )

    plan = Plan(
        plan_id=plan_id or new_plan_id(),
        created_at=created_at or now_utc(),
        resources=resources,
    )
    logger.debug("Synthesized plan %s with %d resources", plan.plan_id, len(resources))
    return plan
