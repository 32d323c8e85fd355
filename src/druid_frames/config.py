"""Instance settings loaded from YAML.

Example settings file::

    connection:
      url: http://localhost:8888
      timeoutSec: 30
    query:
      contextParameters:
        - {name: priority, value: 10}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

DEFAULT_TIMEOUT_SEC = 30.0


@dataclass(frozen=True)
class InstanceSettings:
    """Connection parameters and instance-level context defaults. Read-only."""

    url: str
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    context_parameters: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("connection.url is required")
        if self.timeout_sec <= 0:
            raise ValueError(f"connection.timeoutSec must be positive, got {self.timeout_sec}")


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a mapping")
    return value


def parse_instance_settings(data: Any) -> InstanceSettings:
    """Build InstanceSettings from decoded YAML content.

    Raises:
        ValueError: If the content does not have the expected structure.
    """
    if not isinstance(data, dict):
        raise ValueError("settings file must contain a mapping")
    connection = _section(data, "connection")
    query = _section(data, "query")

    parameters = query.get("contextParameters") or []
    if not isinstance(parameters, list):
        raise ValueError("query.contextParameters must be a list")
    for item in parameters:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise ValueError(f"context parameter must have a string name: {item!r}")

    try:
        timeout = float(connection.get("timeoutSec", DEFAULT_TIMEOUT_SEC))
    except (TypeError, ValueError):
        raise ValueError(f"connection.timeoutSec is not a number: {connection.get('timeoutSec')!r}") from None

    return InstanceSettings(
        url=str(connection.get("url") or ""),
        timeout_sec=timeout,
        context_parameters=tuple(dict(p) for p in parameters),
    )


def load_instance_settings(path: Path) -> InstanceSettings:
    """Load instance settings from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid YAML or misses required values.
    """
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
    return parse_instance_settings(data)


__all__ = ["DEFAULT_TIMEOUT_SEC", "InstanceSettings", "parse_instance_settings", "load_instance_settings"]
