"""Diff engine: previous plan vs new plan -> ChangeSet."""

from __future__ import annotations

import logging
from typing import Any, Optional

from stackplan.plan import Plan, ResourceDescription

from .change_set import MISSING, ChangeSet, ChangeSetEntry, ChangeType, PropertyDelta

logger = logging.getLogger(__name__)


def diff_plans(previous: Optional[Plan], new: Plan) -> ChangeSet:
    """
    Classify every resource appearing in either plan.

    Args:
        previous: Last applied plan, or None when nothing was deployed yet.
        new: Freshly synthesized plan.

    Returns:
        ChangeSet ordered for safe application:
            1. added/modified in the new plan's order (dependencies first)
            2. removed in reverse order of the previous plan (dependents first)
            3. unchanged in the new plan's order
    """
    prev_resources = previous.resources if previous is not None else []
    prev_by_id = {r.identifier: r for r in prev_resources}
    new_ids = {r.identifier for r in new.resources}

    forward: list[ChangeSetEntry] = []
    unchanged: list[ChangeSetEntry] = []

    for resource in new.resources:
        old = prev_by_id.get(resource.identifier)
        if old is None:
            forward.append(
                ChangeSetEntry(
                    identifier=resource.identifier,
                    change_type=ChangeType.ADDED,
                    new=resource,
                )
            )
        elif old.same_as(resource):
            unchanged.append(
                ChangeSetEntry(
                    identifier=resource.identifier,
                    change_type=ChangeType.UNCHANGED,
                    previous=old,
                    new=resource,
                )
            )
        else:
            forward.append(
                ChangeSetEntry(
                    identifier=resource.identifier,
                    change_type=ChangeType.MODIFIED,
                    previous=old,
                    new=resource,
                    deltas=property_deltas(old, resource),
                )
            )

    removals = [
        ChangeSetEntry(
            identifier=resource.identifier,
            change_type=ChangeType.REMOVED,
            previous=resource,
        )
        for resource in reversed(prev_resources)
        if resource.identifier not in new_ids
    ]

    change_set = ChangeSet(
        entries=forward + removals + unchanged,
        previous_plan_id=previous.plan_id if previous is not None else None,
        new_plan_id=new.plan_id,
        new_order=new.identifiers,
    )
    logger.debug("Diff summary: %s", change_set.summary())
    return change_set


def property_deltas(
    before: ResourceDescription,
    after: ResourceDescription,
) -> list[PropertyDelta]:
    """Changed properties sorted by name."""
    deltas: list[PropertyDelta] = []
    names = sorted(set(before.properties) | set(after.properties))
    for name in names:
        old: Any = before.properties.get(name, MISSING)
        new: Any = after.properties.get(name, MISSING)
        if old is MISSING or new is MISSING or old != new:
            deltas.append(PropertyDelta(name=name, before=old, after=new))
    return deltas
