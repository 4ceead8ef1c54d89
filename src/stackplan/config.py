"""Configuration: YAML file plus environment overrides."""

from __future__ import annotations

import importlib
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from stackplan.auth import AuthInfo
from stackplan.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE: str = "stackplan.yaml"
DEFAULT_STATE_PATH: str = ".stackplan/state.json"
DEFAULT_REMOTE: str = "stackplan.deploy.remote:LocalRemoteClient"

ENV_STATE_PATH: str = "STACKPLAN_STATE_PATH"
ENV_MAX_CONCURRENCY: str = "STACKPLAN_MAX_CONCURRENCY"
ENV_REMOTE: str = "STACKPLAN_REMOTE"

_BACKENDS: tuple[str, ...] = ("file", "drive")


@dataclass(slots=True, frozen=True)
class StackConfig:
    """
    Engine settings.

    YAML layout:
        state:
          backend: file | drive
          path: .stackplan/state.json
          drive:
            folder_id: <Drive folder id>
            name: stackplan-state.json
            auth: {kind: oauth, client_secrets_file: ..., token_file: ...}
        apply:
          max_concurrency: 4
          remote: package.module:factory
    """

    state_backend: str = "file"
    state_path: str = DEFAULT_STATE_PATH
    drive_folder_id: Optional[str] = None
    drive_state_name: str = "stackplan-state.json"
    drive_auth: dict[str, Any] = field(default_factory=dict)
    max_concurrency: int = 4
    remote: str = DEFAULT_REMOTE

    def __post_init__(self) -> None:
        if self.state_backend not in _BACKENDS:
            raise ValueError(f"state.backend must be one of {_BACKENDS}")
        if not isinstance(self.max_concurrency, int) or isinstance(self.max_concurrency, bool):
            raise TypeError("apply.max_concurrency must be an integer")
        if self.max_concurrency < 1:
            raise ValueError("apply.max_concurrency must be >= 1")
        if ":" not in self.remote:
            raise ValueError("apply.remote must look like 'package.module:attribute'")
        if self.state_backend == "drive" and not self.drive_folder_id:
            raise ValueError("state.drive.folder_id is required for the drive backend")

    def auth_info(self) -> AuthInfo:
        """AuthInfo for the drive backend."""
        data = dict(self.drive_auth)
        kind = data.pop("kind", "oauth")
        try:
            return AuthInfo(kind=kind, data=data)
        except (TypeError, ValueError) as exc:
            raise ConfigError("Invalid state.drive.auth", cause=exc) from exc


def load_config(
    path: Optional[str | os.PathLike[str]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> StackConfig:
    """
    Load configuration.

    Resolution:
        - explicit `path` must exist
        - otherwise ./stackplan.yaml if present, else defaults
        - STACKPLAN_* environment variables override file values

    Raises:
        ConfigError: if the file cannot be read or holds invalid values.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise ConfigError("Config file not found", details={"path": str(config_path)})
        data = _read_yaml(config_path)
    elif Path(DEFAULT_CONFIG_FILE).exists():
        data = _read_yaml(Path(DEFAULT_CONFIG_FILE))

    state = _section(data, "state")
    drive = _section(state, "drive")
    apply = _section(data, "apply")

    kwargs: dict[str, Any] = {}
    if "backend" in state:
        kwargs["state_backend"] = state["backend"]
    if "path" in state:
        kwargs["state_path"] = str(state["path"])
    if "folder_id" in drive:
        kwargs["drive_folder_id"] = str(drive["folder_id"])
    if "name" in drive:
        kwargs["drive_state_name"] = str(drive["name"])
    if "auth" in drive:
        kwargs["drive_auth"] = dict(_section(drive, "auth"))
    if "max_concurrency" in apply:
        kwargs["max_concurrency"] = apply["max_concurrency"]
    if "remote" in apply:
        kwargs["remote"] = str(apply["remote"])

    if env.get(ENV_STATE_PATH):
        kwargs["state_path"] = env[ENV_STATE_PATH]
    if env.get(ENV_MAX_CONCURRENCY):
        try:
            kwargs["max_concurrency"] = int(env[ENV_MAX_CONCURRENCY])
        except ValueError as exc:
            raise ConfigError(f"{ENV_MAX_CONCURRENCY} must be an integer", cause=exc) from exc
    if env.get(ENV_REMOTE):
        kwargs["remote"] = env[ENV_REMOTE]

    try:
        return StackConfig(**kwargs)
    except (TypeError, ValueError) as exc:
        raise ConfigError(str(exc), cause=exc) from exc


def with_overrides(config: StackConfig, **overrides: Any) -> StackConfig:
    """Return a copy with non-None overrides applied (CLI flags)."""
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return replace(config, **values)
    except (TypeError, ValueError) as exc:
        raise ConfigError(str(exc), cause=exc) from exc


def import_object(path: str) -> Any:
    """Import ``package.module:attribute``."""
    module_name, _, attribute = path.partition(":")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attribute)
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"Cannot import {path}", details={"path": path}, cause=exc) from exc


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError("Failed to read config file", details={"path": str(path)}, cause=exc) from exc

    logger.debug("Loaded config from %s", path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping", details={"path": str(path)})
    return data


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' must be a mapping")
    return value
