"""Ordering helpers shared by the builder, synthesizer, diff engine and orchestrator."""

from __future__ import annotations

import heapq
from typing import Callable, Iterable, Optional, Sequence


def topological_order(
    ids: Sequence[str],
    deps_of: Callable[[str], Iterable[str]],
) -> list[str]:
    """
    Return `ids` sorted so that every id comes after all of its dependencies.

    Rules:
        - Dependencies not contained in `ids` are ignored.
        - Among ids whose dependencies are all placed, the one earliest in
          `ids` goes first (deterministic output).

    Raises:
        ValueError: if the dependencies among `ids` contain a cycle.
    """
    position = {node_id: i for i, node_id in enumerate(ids)}
    if len(position) != len(ids):
        raise ValueError("ids must be unique")

    waiting: dict[str, int] = {}
    dependents: dict[str, list[str]] = {node_id: [] for node_id in ids}
    for node_id in ids:
        deps = {d for d in deps_of(node_id) if d in position}
        waiting[node_id] = len(deps)
        for dep in deps:
            dependents[dep].append(node_id)

    ready = [position[node_id] for node_id in ids if waiting[node_id] == 0]
    heapq.heapify(ready)

    order: list[str] = []
    while ready:
        node_id = ids[heapq.heappop(ready)]
        order.append(node_id)
        for dependent in dependents[node_id]:
            waiting[dependent] -= 1
            if waiting[dependent] == 0:
                heapq.heappush(ready, position[dependent])

    if len(order) != len(ids):
        raise ValueError("dependency cycle detected")
    return order


def find_cycle(
    ids: Sequence[str],
    deps_of: Callable[[str], Iterable[str]],
) -> Optional[list[str]]:
    """
    Depth-first search for a cycle.

    Returns:
        The first cycle found as identifiers in edge order (each element
        references the next, the last references the first), or None.
    """
    members = set(ids)
    visiting: set[str] = set()
    done: set[str] = set()

    for start in ids:
        if start in done:
            continue

        path: list[str] = [start]
        stack = [iter(_deps_in(start, deps_of, members))]
        visiting.add(start)

        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                finished = path.pop()
                stack.pop()
                visiting.discard(finished)
                done.add(finished)
                continue
            if dep in visiting:
                return path[path.index(dep):]
            if dep in done:
                continue
            path.append(dep)
            visiting.add(dep)
            stack.append(iter(_deps_in(dep, deps_of, members)))

    return None


def _deps_in(
    node_id: str,
    deps_of: Callable[[str], Iterable[str]],
    members: set[str],
) -> list[str]:
    return [d for d in deps_of(node_id) if d in members]
