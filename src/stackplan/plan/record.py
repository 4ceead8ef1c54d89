"""StateRecord: the versioned "last applied" plan plus deployed attributes."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from stackplan.errors import InvalidStateError

from .document import dumps_document, plan_from_document, plan_to_document
from .plan import Plan

RECORD_FORMAT_VERSION: int = 1


@dataclass(slots=True)
class StateRecord:
    """
    Durable record of what is actually deployed.

    Attributes:
        version: Incremented on every successful save; 0 means "never deployed".
        plan: Descriptions of the deployed resources (None before the first apply).
        attributes: Remote attributes per identifier (e.g. generated ids),
            used to resolve Deferred tokens of dependents.
    """

    version: int = 0
    plan: Optional[Plan] = None
    attributes: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "StateRecord":
        return cls()

    def attributes_of(self, identifier: str) -> dict[str, Any]:
        return dict(self.attributes.get(identifier, {}))


def record_to_document(record: StateRecord) -> dict[str, Any]:
    return {
        "format_version": RECORD_FORMAT_VERSION,
        "version": record.version,
        "plan": plan_to_document(record.plan) if record.plan is not None else None,
        "attributes": record.attributes,
    }


def record_from_document(data: Any) -> StateRecord:
    """
    Parse a stored record.

    Raises:
        InvalidStateError: if the document is malformed.
    """
    if not isinstance(data, dict):
        raise InvalidStateError("State record must be an object")
    if data.get("format_version") != RECORD_FORMAT_VERSION:
        raise InvalidStateError(
            "Unsupported state record format_version",
            details={"format_version": data.get("format_version")},
        )

    version = data.get("version")
    if not isinstance(version, int) or isinstance(version, bool) or version < 0:
        raise InvalidStateError("State record has an invalid 'version'")

    attributes = data.get("attributes", {})
    if not isinstance(attributes, dict) or not all(
        isinstance(v, dict) for v in attributes.values()
    ):
        raise InvalidStateError("'attributes' must map identifiers to objects")

    raw_plan = data.get("plan")
    plan = plan_from_document(raw_plan) if raw_plan is not None else None

    return StateRecord(version=version, plan=plan, attributes=attributes)


def dumps_record(record: StateRecord) -> str:
    return dumps_document(record_to_document(record))


def loads_record(text: str) -> StateRecord:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidStateError("State record is not valid JSON", cause=exc) from exc
    return record_from_document(data)
