"""DeploymentOrchestrator: applies a ChangeSet against a RemoteClient."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from stackplan.diff import (
    ChangeSet,
    ChangeSetEntry,
    ChangeType,
    build_apply_order,
    entry_dependencies,
)
from stackplan.errors import InvalidArgumentError, RemoteOperationFailure, StackPlanError
from stackplan.graph import topological_order
from stackplan.models import ApplyResult, Deferred, EntryResult, resolve_value
from stackplan.plan import Plan, ResourceDescription, StateRecord
from stackplan.util.ids import new_plan_id
from stackplan.util.time import now_utc

from .remote import RemoteClient, RemoteResult

logger = logging.getLogger(__name__)


class EntryState(str, Enum):
    """Per-entry state machine: pending -> in-progress -> terminal."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


_BLOCKING_STATES: set[EntryState] = {EntryState.FAILED, EntryState.SKIPPED}


@dataclass(slots=True)
class _Task:
    entry: ChangeSetEntry
    deps: set[str]
    state: EntryState = EntryState.PENDING
    attributes: dict[str, Any] = field(default_factory=dict)
    error: Optional[StackPlanError] = None
    skipped_because: Optional[str] = None


@dataclass(frozen=True, slots=True)
class _Outcome:
    attributes: dict[str, Any]
    error: Optional[StackPlanError] = None


class DeploymentOrchestrator:
    """
    Apply a ChangeSet in dependency order with bounded concurrency.

    Policy:
        - An entry starts only when every entry it depends on has succeeded.
        - At most `max_concurrency` remote operations are in flight.
        - A failed entry makes its dependents (transitively) skipped; independent
          entries keep going.
        - cancel(): nothing new starts, pending entries become skipped, in-flight
          operations run to their own terminal state.
        - The returned StateRecord reflects exactly what was applied.
    """

    def __init__(self, remote: RemoteClient, *, max_concurrency: int = 4) -> None:
        if max_concurrency < 1:
            raise InvalidArgumentError(
                "max_concurrency must be >= 1",
                details={"max_concurrency": max_concurrency},
            )
        self._remote = remote
        self._max_concurrency = max_concurrency
        self._cancel_event = threading.Event()

    @property
    def remote(self) -> RemoteClient:
        return self._remote

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def cancel(self) -> None:
        """
        Request cancellation of the running apply.

        A request made while no apply is running is dropped when the next
        apply starts.
        """
        self._cancel_event.set()

    def apply(
        self,
        change_set: ChangeSet,
        record: StateRecord,
    ) -> tuple[ApplyResult, StateRecord]:
        """
        Apply `change_set` on top of `record`.

        Returns:
            (ApplyResult, next StateRecord). The caller persists the record.
        """
        self._cancel_event.clear()
        deps = entry_dependencies(change_set)
        order = build_apply_order(change_set)
        tasks = {
            entry.identifier: _Task(entry=entry, deps=deps[entry.identifier])
            for entry in change_set.changes
        }
        known_attributes = {k: dict(v) for k, v in record.attributes.items()}
        applied_order: list[str] = []
        cancelled = False

        logger.info(
            "Applying %d change(s) with max_concurrency=%d",
            len(order),
            self._max_concurrency,
        )

        in_flight: dict[Future[_Outcome], str] = {}
        with ThreadPoolExecutor(
            max_workers=self._max_concurrency,
            thread_name_prefix="stackplan-apply",
        ) as pool:
            while True:
                _skip_blocked(tasks, order)

                if self._cancel_event.is_set():
                    cancelled = _skip_pending(tasks, order, "cancelled") or cancelled
                else:
                    for identifier in order:
                        if len(in_flight) >= self._max_concurrency:
                            break
                        task = tasks[identifier]
                        if task.state is not EntryState.PENDING:
                            continue
                        if not all(tasks[d].state is EntryState.SUCCEEDED for d in task.deps):
                            continue

                        task.state = EntryState.IN_PROGRESS
                        applied_order.append(identifier)
                        logger.debug("%s: pending -> in-progress", identifier)
                        future = pool.submit(
                            self._run_entry,
                            task.entry,
                            dict(known_attributes),
                            record.attributes_of(identifier),
                        )
                        in_flight[future] = identifier

                if not in_flight:
                    break

                done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                for future in done:
                    identifier = in_flight.pop(future)
                    task = tasks[identifier]
                    outcome = future.result()
                    if outcome.error is None:
                        task.state = EntryState.SUCCEEDED
                        task.attributes = outcome.attributes
                        if task.entry.change_type is ChangeType.REMOVED:
                            known_attributes.pop(identifier, None)
                        else:
                            known_attributes[identifier] = outcome.attributes
                        logger.debug("%s: in-progress -> succeeded", identifier)
                    else:
                        task.state = EntryState.FAILED
                        task.error = outcome.error
                        logger.warning(
                            "%s %s failed: %s",
                            task.entry.change_type.value,
                            identifier,
                            outcome.error,
                        )

        self._cancel_event.clear()

        results = [_entry_result(tasks[identifier]) for identifier in order]
        summary = _summarize(results)
        status = _overall_status(summary, cancelled)
        next_record = _next_record(record, change_set, tasks, status)

        logger.info("Apply finished with status=%s %s", status, summary)
        return (
            ApplyResult(
                status=status,  # type: ignore[arg-type]
                results=results,
                applied_order=applied_order,
                summary=summary,
            ),
            next_record,
        )

    # ----------------------------
    # Internals
    # ----------------------------
    def _run_entry(
        self,
        entry: ChangeSetEntry,
        known_attributes: dict[str, dict[str, Any]],
        prior_attributes: dict[str, Any],
    ) -> _Outcome:
        """Run one remote operation in a worker thread. Never raises."""
        try:
            result = self._invoke(entry, known_attributes, prior_attributes)
        except RemoteOperationFailure as exc:
            return _Outcome(attributes={}, error=exc)
        except Exception as exc:
            return _Outcome(
                attributes={},
                error=RemoteOperationFailure(
                    f"Remote {entry.change_type.value} raised {exc.__class__.__name__}: {exc}",
                    details={"identifier": entry.identifier},
                    cause=exc,
                ),
            )

        if not result.ok:
            details = {"identifier": entry.identifier}
            details.update(result.details or {})
            return _Outcome(
                attributes={},
                error=RemoteOperationFailure(
                    result.error or "Remote operation failed",
                    details=details,
                ),
            )
        return _Outcome(attributes=dict(result.attributes))

    def _invoke(
        self,
        entry: ChangeSetEntry,
        known_attributes: dict[str, dict[str, Any]],
        prior_attributes: dict[str, Any],
    ) -> RemoteResult:
        if entry.change_type is ChangeType.REMOVED:
            assert entry.previous is not None
            return self._remote.delete(entry.previous.type, entry.identifier, prior_attributes)

        assert entry.new is not None
        properties = _resolve_properties(entry.new, known_attributes)
        if entry.change_type is ChangeType.ADDED:
            return self._remote.create(entry.new.type, entry.identifier, properties)
        return self._remote.update(
            entry.new.type,
            entry.identifier,
            properties,
            prior_attributes,
        )


def _resolve_properties(
    resource: ResourceDescription,
    known_attributes: dict[str, dict[str, Any]],
) -> dict[str, Any]:
    def lookup(deferred: Deferred) -> Any:
        attrs = known_attributes.get(deferred.ref)
        if attrs is None or deferred.attribute not in attrs:
            raise RemoteOperationFailure(
                f"Deferred value {deferred.path} is not available",
                details={"identifier": resource.identifier, "reference": deferred.path},
            )
        return attrs[deferred.attribute]

    return resolve_value(resource.properties, lookup)


def _skip_blocked(tasks: dict[str, _Task], order: list[str]) -> None:
    """Skip pending tasks with a failed/skipped dependency (order is topological)."""
    for identifier in order:
        task = tasks[identifier]
        if task.state is not EntryState.PENDING:
            continue
        for dep in task.deps:
            if tasks[dep].state in _BLOCKING_STATES:
                task.state = EntryState.SKIPPED
                task.skipped_because = dep
                logger.debug("%s: pending -> skipped (blocked by %s)", identifier, dep)
                break


def _skip_pending(tasks: dict[str, _Task], order: list[str], reason: str) -> bool:
    skipped = False
    for identifier in order:
        task = tasks[identifier]
        if task.state is EntryState.PENDING:
            task.state = EntryState.SKIPPED
            task.skipped_because = reason
            skipped = True
    return skipped


def _entry_result(task: _Task) -> EntryResult:
    entry = task.entry
    if task.state is EntryState.SUCCEEDED:
        return EntryResult(
            identifier=entry.identifier,
            change_type=entry.change_type.value,
            status="succeeded",
            attributes=dict(task.attributes),
        )
    if task.state is EntryState.FAILED:
        exc = task.error
        return EntryResult(
            identifier=entry.identifier,
            change_type=entry.change_type.value,
            status="failed",
            error_type=exc.__class__.__name__ if exc else None,
            error_message=str(exc) if exc else None,
            error_details=getattr(exc, "details", None),
        )
    return EntryResult(
        identifier=entry.identifier,
        change_type=entry.change_type.value,
        status="skipped",
        skipped_because=task.skipped_because,
    )


def _summarize(results: list[EntryResult]) -> dict[str, int]:
    summary: dict[str, int] = {"succeeded": 0, "failed": 0, "skipped": 0}
    for r in results:
        summary[r.status] = summary.get(r.status, 0) + 1
    return summary


def _overall_status(summary: dict[str, int], cancelled: bool) -> str:
    if cancelled:
        return "cancelled"
    if not summary["failed"] and not summary["skipped"]:
        return "success"
    if not summary["succeeded"]:
        return "failed"
    return "partial"


def _next_record(
    record: StateRecord,
    change_set: ChangeSet,
    tasks: dict[str, _Task],
    status: str,
) -> StateRecord:
    """Prior state overlaid with exactly the entries that succeeded."""
    prior_resources = record.plan.resources if record.plan is not None else []
    descriptions = {r.identifier: r for r in prior_resources}
    attributes = {k: dict(v) for k, v in record.attributes.items()}

    for entry in change_set.entries:
        if entry.change_type is ChangeType.UNCHANGED:
            assert entry.new is not None
            descriptions[entry.identifier] = entry.new
            continue

        task = tasks[entry.identifier]
        if task.state is not EntryState.SUCCEEDED:
            continue
        if entry.change_type is ChangeType.REMOVED:
            descriptions.pop(entry.identifier, None)
            attributes.pop(entry.identifier, None)
        else:
            assert entry.new is not None
            descriptions[entry.identifier] = entry.new
            attributes[entry.identifier] = dict(task.attributes)

    hint = [i for i in change_set.new_order if i in descriptions]
    placed = set(hint)
    hint += [
        r.identifier
        for r in prior_resources
        if r.identifier in descriptions and r.identifier not in placed
    ]
    order = topological_order(hint, lambda i: descriptions[i].depends_on)

    plan_id = change_set.new_plan_id if status == "success" and change_set.new_plan_id else new_plan_id()
    plan = Plan(
        plan_id=plan_id,
        created_at=now_utc(),
        resources=[descriptions[i] for i in order],
    )
    return StateRecord(
        version=record.version + 1,
        plan=plan,
        attributes={k: v for k, v in attributes.items() if k in descriptions},
    )
