"""Remote collaborator contract and a local in-memory implementation."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from stackplan.util.ids import physical_id


@dataclass(frozen=True, slots=True)
class RemoteResult:
    """Terminal outcome of one remote operation."""

    ok: bool
    attributes: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    @classmethod
    def success(cls, attributes: Optional[dict[str, Any]] = None) -> "RemoteResult":
        return cls(ok=True, attributes=dict(attributes or {}))

    @classmethod
    def failure(
        cls,
        error: str,
        details: Optional[dict[str, Any]] = None,
    ) -> "RemoteResult":
        return cls(ok=False, error=error, details=details)


class RemoteClient(Protocol):
    """
    Create/read/update/delete interface keyed by resource type and identifier.

    Implementations return a terminal RemoteResult, or raise. Calls may
    arrive concurrently from worker threads.
    """

    def create(
        self,
        resource_type: str,
        identifier: str,
        properties: dict[str, Any],
    ) -> RemoteResult:
        ...

    def read(
        self,
        resource_type: str,
        identifier: str,
        attributes: dict[str, Any],
    ) -> RemoteResult:
        ...

    def update(
        self,
        resource_type: str,
        identifier: str,
        properties: dict[str, Any],
        previous_attributes: dict[str, Any],
    ) -> RemoteResult:
        ...

    def delete(
        self,
        resource_type: str,
        identifier: str,
        attributes: dict[str, Any],
    ) -> RemoteResult:
        ...


class LocalRemoteClient:
    """
    In-memory RemoteClient: no I/O, deterministic physical ids.

    Useful for previewing an apply and for tests. `calls` records every
    operation as ``(action, identifier)`` in call order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.resources: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []

    def create(
        self,
        resource_type: str,
        identifier: str,
        properties: dict[str, Any],
    ) -> RemoteResult:
        attributes = {"id": physical_id(resource_type, identifier), "type": resource_type}
        with self._lock:
            self.calls.append(("create", identifier))
            self.resources[identifier] = {"properties": properties, "attributes": attributes}
        return RemoteResult.success(attributes)

    def read(
        self,
        resource_type: str,
        identifier: str,
        attributes: dict[str, Any],
    ) -> RemoteResult:
        with self._lock:
            self.calls.append(("read", identifier))
            stored = self.resources.get(identifier)
        if stored is None:
            return RemoteResult.failure("not found", {"identifier": identifier})
        return RemoteResult.success(stored["attributes"])

    def update(
        self,
        resource_type: str,
        identifier: str,
        properties: dict[str, Any],
        previous_attributes: dict[str, Any],
    ) -> RemoteResult:
        attributes = dict(previous_attributes)
        attributes.setdefault("id", physical_id(resource_type, identifier))
        attributes["type"] = resource_type
        with self._lock:
            self.calls.append(("update", identifier))
            self.resources[identifier] = {"properties": properties, "attributes": attributes}
        return RemoteResult.success(attributes)

    def delete(
        self,
        resource_type: str,
        identifier: str,
        attributes: dict[str, Any],
    ) -> RemoteResult:
        with self._lock:
            self.calls.append(("delete", identifier))
            self.resources.pop(identifier, None)
        return RemoteResult.success()
