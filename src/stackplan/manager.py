"""StackManager: declarations -> plan -> diff -> apply, with a durable store."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from stackplan.config import StackConfig, import_object
from stackplan.deploy import DeploymentOrchestrator, RemoteClient
from stackplan.diff import ChangeSet, diff_plans
from stackplan.errors import RemoteOperationFailure
from stackplan.graph import build_graph
from stackplan.models import ApplyResult, ResourceDeclaration
from stackplan.plan import Plan, StateRecord, synthesize
from stackplan.store import DrivePlanStore, FilePlanStore, PlanStore

logger = logging.getLogger(__name__)


class StackManager:
    """
    High-level manager for safe deployment: Plan -> Diff -> Apply.

    Policy:
        - Build-time errors (duplicate ids, unresolved references, cycles,
          unresolvable properties) are raised before the store or the remote
          are touched.
        - Remote failures never raise; they are reported in ApplyResult.
        - The store is written once per apply, after every entry is terminal.
    """

    def __init__(
        self,
        store: PlanStore,
        remote: RemoteClient,
        *,
        max_concurrency: int = 4,
    ) -> None:
        self._store = store
        self._orchestrator = DeploymentOrchestrator(remote, max_concurrency=max_concurrency)

    @classmethod
    def from_config(cls, config: StackConfig) -> "StackManager":
        """Create a manager with the store and remote named by `config`."""
        factory = import_object(config.remote)
        return cls(
            create_store(config),
            factory(),
            max_concurrency=config.max_concurrency,
        )

    @property
    def store(self) -> PlanStore:
        return self._store

    def load_state(self) -> StateRecord:
        return self._store.load()

    def plan(self, declarations: Iterable[ResourceDeclaration]) -> Plan:
        """Build the graph and synthesize a plan (no store or remote access)."""
        return build_plan(declarations)

    def diff(self, declarations: Iterable[ResourceDeclaration]) -> ChangeSet:
        """Compare a fresh plan against the last applied one."""
        plan = self.plan(declarations)
        return diff_plans(self._store.load().plan, plan)

    def apply(self, declarations: Iterable[ResourceDeclaration]) -> ApplyResult:
        """Plan, diff against the stored record, apply, then persist."""
        plan = self.plan(declarations)
        return self._apply_plan(plan)

    def destroy(self) -> ApplyResult:
        """Remove every recorded resource (dependents first)."""
        return self._apply_plan(Plan.empty())

    def cancel(self) -> None:
        """
        Stop starting new remote operations in the running apply.

        Has no effect when no apply is running.
        """
        self._orchestrator.cancel()

    def missing_resources(self) -> list[str]:
        """Recorded identifiers the remote no longer reports, in plan order."""
        record = self._store.load()
        if record.plan is None:
            return []
        remote = self._orchestrator.remote
        missing: list[str] = []
        for resource in record.plan.resources:
            try:
                result = remote.read(
                    resource.type, resource.identifier, record.attributes_of(resource.identifier)
                )
            except RemoteOperationFailure:
                raise
            except Exception as exc:
                raise RemoteOperationFailure(
                    f"Remote read raised {exc.__class__.__name__}: {exc}",
                    details={"identifier": resource.identifier},
                    cause=exc,
                ) from exc
            if not result.ok:
                logger.warning(
                    "%s is recorded but missing remotely: %s", resource.identifier, result.error
                )
                missing.append(resource.identifier)
        return missing

    # ----------------------------
    # Internals
    # ----------------------------
    def _apply_plan(self, plan: Plan) -> ApplyResult:
        record = self._store.load()
        change_set = diff_plans(record.plan, plan)
        if change_set.is_empty:
            logger.info("No changes; state version %d is up to date", record.version)
            return ApplyResult(status="success", results=[], summary=_empty_summary())

        result, next_record = self._orchestrator.apply(change_set, record)
        self._store.save(next_record, expected_version=record.version)
        return result


def create_store(config: StackConfig) -> PlanStore:
    """Build the PlanStore selected by `config.state_backend`."""
    if config.state_backend == "drive":
        from stackplan.controller import DriveStateController

        controller = DriveStateController(config.auth_info())
        assert config.drive_folder_id is not None
        return DrivePlanStore(
            controller,
            config.drive_folder_id,
            name=config.drive_state_name,
        )
    return FilePlanStore(config.state_path)


def _empty_summary() -> dict[str, int]:
    return {"succeeded": 0, "failed": 0, "skipped": 0}


def describe_record(record: StateRecord) -> Optional[str]:
    if record.plan is None or len(record.plan) == 0:
        return None
    return f"version {record.version}, {len(record.plan)} resource(s), plan {record.plan.plan_id}"


def build_plan(declarations: Iterable[ResourceDeclaration]) -> Plan:
    """Build the graph and synthesize a plan."""
    return synthesize(build_graph(declarations))
