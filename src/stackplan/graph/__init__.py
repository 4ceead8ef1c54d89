"""Public graph exports for stackplan."""

from __future__ import annotations

from .builder import GraphBuilder, build_graph, prune_declarations
from .node import ResourceGraph, ResourceNode
from .ordering import find_cycle, topological_order

__all__ = [
    "GraphBuilder",
    "ResourceGraph",
    "ResourceNode",
    "build_graph",
    "prune_declarations",
    "find_cycle",
    "topological_order",
]
