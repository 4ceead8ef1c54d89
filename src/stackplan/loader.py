"""Load resource declarations from YAML."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from stackplan.errors import ConfigError, InvalidDeclarationError
from stackplan.models import ResourceDeclaration, parse_ref_path

logger = logging.getLogger(__name__)


class _DeclarationLoader(yaml.SafeLoader):
    """SafeLoader with a ``!ref id.attr`` tag for Deferred values."""


def _construct_ref(loader: yaml.SafeLoader, node: yaml.Node) -> Any:
    value = loader.construct_scalar(node)  # type: ignore[arg-type]
    try:
        return parse_ref_path(str(value))
    except ValueError as exc:
        raise yaml.constructor.ConstructorError(
            None, None, f"invalid !ref value: {value!r}", node.start_mark
        ) from exc


_DeclarationLoader.add_constructor("!ref", _construct_ref)


def loads_declarations(text: str) -> list[ResourceDeclaration]:
    """
    Parse declarations.

    Format:
        resources:
          - id: network
            type: aws:ec2:Vpc
            properties: {cidr: 10.0.0.0/16}
          - id: cluster
            type: aws:ecs:Cluster
            properties:
              vpcId: !ref network.id
            depends_on: []
    """
    try:
        data = yaml.load(text, Loader=_DeclarationLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as exc:
        raise ConfigError("Declarations are not valid YAML", cause=exc) from exc

    if data is None:
        return []
    if not isinstance(data, dict) or not isinstance(data.get("resources", []), list):
        raise ConfigError("Declarations must be a mapping with a 'resources' list")

    declarations: list[ResourceDeclaration] = []
    for index, item in enumerate(data.get("resources") or []):
        declarations.append(_declaration_from_item(index, item))
    return declarations


def load_declarations(path: str | os.PathLike[str]) -> list[ResourceDeclaration]:
    file_path = Path(path).expanduser()
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            "Failed to read declarations file",
            details={"path": str(file_path)},
            cause=exc,
        ) from exc

    declarations = loads_declarations(text)
    logger.debug("Loaded %d declarations from %s", len(declarations), file_path)
    return declarations


def _declaration_from_item(index: int, item: Any) -> ResourceDeclaration:
    if not isinstance(item, dict):
        raise InvalidDeclarationError(
            "Each resource must be a mapping",
            details={"index": index},
        )

    properties = item.get("properties") or {}
    depends_on = item.get("depends_on") or []
    if not isinstance(properties, dict):
        raise InvalidDeclarationError("'properties' must be a mapping", details={"index": index})
    if not isinstance(depends_on, list):
        raise InvalidDeclarationError("'depends_on' must be a list", details={"index": index})

    return ResourceDeclaration(
        identifier=_scalar(item.get("id"), "id", index),
        type=_scalar(item.get("type"), "type", index),
        properties=properties,
        depends_on=[_scalar(d, "depends_on", index) for d in depends_on],
    )


def _scalar(value: Any, key: str, index: int) -> str:
    # bool is excluded: YAML reads yes/no/on/off as booleans
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidDeclarationError(
            f"'{key}' must be a non-empty string",
            details={"index": index, key: value},
        )
    text = str(value)
    if not text.strip():
        raise InvalidDeclarationError(
            f"'{key}' must be a non-empty string",
            details={"index": index},
        )
    return text
