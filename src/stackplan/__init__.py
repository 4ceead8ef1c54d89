"""stackplan public API."""

from __future__ import annotations

from stackplan.deploy import (
    DeploymentOrchestrator,
    LocalRemoteClient,
    RemoteClient,
    RemoteResult,
)
from stackplan.diff import ChangeSet, ChangeSetEntry, ChangeType, PropertyDelta, diff_plans
from stackplan.errors import (
    BuildError,
    ConfigError,
    ConflictError,
    CyclicDependencyError,
    DuplicateIdentifierError,
    InvalidDeclarationError,
    InvalidStateError,
    RemoteOperationFailure,
    StackPlanError,
    UnresolvablePropertyError,
    UnresolvedReferenceError,
)
from stackplan.graph import GraphBuilder, ResourceGraph, ResourceNode, build_graph
from stackplan.loader import load_declarations, loads_declarations
from stackplan.manager import StackManager, build_plan
from stackplan.models import (
    ApplyResult,
    Concrete,
    Deferred,
    EntryResult,
    ResourceDeclaration,
    ref,
)
from stackplan.plan import Plan, ResourceDescription, StateRecord, dumps_plan, loads_plan, synthesize
from stackplan.store import DrivePlanStore, FilePlanStore, PlanStore

__all__ = [
    # High-level
    "StackManager",
    "build_plan",
    "load_declarations",
    "loads_declarations",
    # Declarations / Graph
    "ResourceDeclaration",
    "Concrete",
    "Deferred",
    "ref",
    "GraphBuilder",
    "ResourceGraph",
    "ResourceNode",
    "build_graph",
    # Plan / Diff
    "Plan",
    "ResourceDescription",
    "StateRecord",
    "synthesize",
    "dumps_plan",
    "loads_plan",
    "ChangeSet",
    "ChangeSetEntry",
    "ChangeType",
    "PropertyDelta",
    "diff_plans",
    # Deploy
    "DeploymentOrchestrator",
    "RemoteClient",
    "RemoteResult",
    "LocalRemoteClient",
    "ApplyResult",
    "EntryResult",
    # Stores
    "PlanStore",
    "FilePlanStore",
    "DrivePlanStore",
    # Errors
    "StackPlanError",
    "BuildError",
    "InvalidDeclarationError",
    "DuplicateIdentifierError",
    "UnresolvedReferenceError",
    "CyclicDependencyError",
    "UnresolvablePropertyError",
    "RemoteOperationFailure",
    "ConfigError",
    "InvalidStateError",
    "ConflictError",
]
