"""
Settings Loader (``workflow_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the typed
``workflow_config.schema`` dataclasses.  Callers at runtime go through
``workflow_config.get_active_settings()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unknown node type in ``editor.node_names``  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from workflow_config.schema import (
    DEFAULT_NODE_NAMES,
    DatabaseSettings,
    EditorSettings,
    WorkflowSettings,
)
from workflow_kernel.domain.graph import NodeType


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed settings document."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    return DatabaseSettings(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 10)),
        max_overflow=int(data.get("max_overflow", 5)),
    )


def parse_editor(data: dict[str, Any]) -> EditorSettings:
    node_names = dict(DEFAULT_NODE_NAMES)
    for key, value in (data.get("node_names") or {}).items():
        node_names[NodeType(key)] = str(value)

    new_node = data.get("new_node") or {}
    defaults = EditorSettings()
    return EditorSettings(
        start_name=str(data.get("start_name", defaults.start_name)),
        end_name=str(data.get("end_name", defaults.end_name)),
        node_names=node_names,
        approve_label=str(data.get("approve_label", defaults.approve_label)),
        reject_label=str(data.get("reject_label", defaults.reject_label)),
        new_node_x=float(new_node.get("x", defaults.new_node_x)),
        new_node_y=float(new_node.get("y", defaults.new_node_y)),
        new_node_spacing=float(new_node.get("spacing", defaults.new_node_spacing)),
    )


def parse_settings(data: dict[str, Any]) -> WorkflowSettings:
    """Parse a whole settings document."""
    logging_section = data.get("logging") or {}
    return WorkflowSettings(
        database=parse_database(data["database"]),
        editor=parse_editor(data.get("editor") or {}),
        log_level=str(logging_section.get("level", "INFO")).upper(),
        checksum=compute_checksum(data),
    )


def load_settings(path: Path) -> WorkflowSettings:
    return parse_settings(load_yaml_file(path))
