"""Plan document: stable, diff-friendly JSON interchange format."""

from __future__ import annotations

import json
from typing import Any

from stackplan.errors import InvalidStateError, UnresolvablePropertyError
from stackplan.util.time import parse_rfc3339, to_rfc3339

from .plan import Plan, ResourceDescription

PLAN_FORMAT_VERSION: int = 1


def description_to_document(resource: ResourceDescription) -> dict[str, Any]:
    return {
        "id": resource.identifier,
        "type": resource.type,
        "properties": resource.properties,
        "depends_on": list(resource.depends_on),
    }


def description_from_document(data: Any) -> ResourceDescription:
    if not isinstance(data, dict):
        raise InvalidStateError("Resource entry must be an object")

    identifier = data.get("id")
    resource_type = data.get("type")
    properties = data.get("properties", {})
    depends_on = data.get("depends_on", [])

    if not isinstance(identifier, str) or not identifier:
        raise InvalidStateError("Resource entry is missing 'id'")
    if not isinstance(resource_type, str) or not resource_type:
        raise InvalidStateError("Resource entry is missing 'type'", details={"id": identifier})
    if not isinstance(properties, dict):
        raise InvalidStateError("'properties' must be an object", details={"id": identifier})
    if not isinstance(depends_on, list) or not all(isinstance(d, str) for d in depends_on):
        raise InvalidStateError("'depends_on' must be a list of strings", details={"id": identifier})

    return ResourceDescription(
        identifier=identifier,
        type=resource_type,
        properties=properties,
        depends_on=tuple(sorted(depends_on)),
    )


def plan_to_document(plan: Plan) -> dict[str, Any]:
    return {
        "format_version": PLAN_FORMAT_VERSION,
        "plan_id": plan.plan_id,
        "created_at": to_rfc3339(plan.created_at),
        "resources": [description_to_document(r) for r in plan.resources],
    }


def plan_from_document(data: Any) -> Plan:
    """
    Parse a plan document.

    Raises:
        InvalidStateError: if the document is malformed or violates plan invariants.
    """
    if not isinstance(data, dict):
        raise InvalidStateError("Plan document must be an object")
    if data.get("format_version") != PLAN_FORMAT_VERSION:
        raise InvalidStateError(
            "Unsupported plan format_version",
            details={"format_version": data.get("format_version")},
        )

    plan_id = data.get("plan_id")
    if not isinstance(plan_id, str) or not plan_id:
        raise InvalidStateError("Plan document is missing 'plan_id'")

    try:
        created_at = parse_rfc3339(data.get("created_at"))  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidStateError("Plan document has an invalid 'created_at'", cause=exc) from exc

    resources = data.get("resources", [])
    if not isinstance(resources, list):
        raise InvalidStateError("'resources' must be a list")

    plan = Plan(
        plan_id=plan_id,
        created_at=created_at,
        resources=[description_from_document(r) for r in resources],
    )
    try:
        plan.validate()
    except UnresolvablePropertyError as exc:
        raise InvalidStateError("Plan document violates plan invariants", cause=exc) from exc
    return plan


def dumps_document(data: dict[str, Any]) -> str:
    """Serialize with sorted keys and fixed indentation; ends with a newline."""
    return json.dumps(data, sort_keys=True, indent=2, ensure_ascii=False) + "\n"


def dumps_plan(plan: Plan) -> str:
    return dumps_document(plan_to_document(plan))


def loads_plan(text: str) -> Plan:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidStateError("Plan document is not valid JSON", cause=exc) from exc
    return plan_from_document(data)
