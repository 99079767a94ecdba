"""
Workflow settings schema.

Typed, frozen view of ``settings.yaml``.  The loader parses YAML into these
types; ``validate_settings`` checks them; ``get_active_settings`` is the only
runtime entry point.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from workflow_kernel.domain.graph import (
    CREATABLE_NODE_TYPES,
    DEFAULT_DECISION_LABELS,
    EdgeCondition,
    NodeType,
)

DEFAULT_NODE_NAMES: dict[NodeType, str] = {
    NodeType.APPROVAL: "New approval node",
    NodeType.CC: "New CC node",
    NodeType.NOTIFY: "New notify node",
    NodeType.CONDITION: "New condition branch",
}


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection parameters for the workflow store."""

    url: str
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5


@dataclass(frozen=True)
class EditorSettings:
    """Defaults the canvas editor applies to new graphs, nodes and edges."""

    start_name: str = "Start"
    end_name: str = "End"
    node_names: dict[NodeType, str] = field(
        default_factory=lambda: dict(DEFAULT_NODE_NAMES)
    )
    approve_label: str = DEFAULT_DECISION_LABELS[EdgeCondition.APPROVED]
    reject_label: str = DEFAULT_DECISION_LABELS[EdgeCondition.REJECTED]
    new_node_x: float = 220
    new_node_y: float = 120
    new_node_spacing: float = 80

    def node_name(self, node_type: NodeType) -> str:
        return self.node_names.get(node_type, node_type.value)

    @property
    def decision_labels(self) -> dict[EdgeCondition, str]:
        return {
            EdgeCondition.APPROVED: self.approve_label,
            EdgeCondition.REJECTED: self.reject_label,
        }

    @property
    def creatable_types_without_name(self) -> list[NodeType]:
        return sorted(
            (t for t in CREATABLE_NODE_TYPES if not self.node_names.get(t)),
            key=lambda t: t.value,
        )


@dataclass(frozen=True)
class WorkflowSettings:
    """Root settings object."""

    database: DatabaseSettings
    editor: EditorSettings = field(default_factory=EditorSettings)
    log_level: str = "INFO"
    checksum: str = ""
