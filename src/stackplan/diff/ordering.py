"""Apply ordering rules for ChangeSet entries."""

from __future__ import annotations

from .change_set import ChangeSet, ChangeType

_FORWARD_TYPES: set[ChangeType] = {ChangeType.ADDED, ChangeType.MODIFIED}


def build_apply_order(change_set: ChangeSet) -> list[str]:
    """Identifiers of entries needing a remote operation, in change-set order."""
    return [entry.identifier for entry in change_set.changes]


def entry_dependencies(change_set: ChangeSet) -> dict[str, set[str]]:
    """
    Partial order between entries that need a remote operation.

    Rules:
        - added/modified X waits for added/modified entries X references in
          the new plan.
        - removed X waits for removals of resources that referenced X in the
          previous plan (dependents are removed first).
        - removed X waits for modifications of resources whose previous
          description referenced X (the reference is dropped first).

    Unchanged resources are already deployed and never appear as a dependency.
    """
    changes = {entry.identifier: entry for entry in change_set.changes}
    deps: dict[str, set[str]] = {identifier: set() for identifier in changes}

    for identifier, entry in changes.items():
        if entry.change_type in _FORWARD_TYPES:
            assert entry.new is not None
            for ref in entry.new.depends_on:
                other = changes.get(ref)
                if other is not None and other.change_type in _FORWARD_TYPES:
                    deps[identifier].add(ref)

        if entry.previous is None or entry.change_type is ChangeType.ADDED:
            continue
        for ref in entry.previous.depends_on:
            target = changes.get(ref)
            if target is not None and target.change_type is ChangeType.REMOVED:
                deps[ref].add(identifier)

    return deps
