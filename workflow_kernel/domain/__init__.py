"""
Pure domain layer.

This package contains the workflow graph model and the logic over it
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Configuration files
- I/O

Value objects are immutable; ``WorkflowGraph`` is the one mutable
container and is owned by an editor session.
"""

from workflow_kernel.domain.condition_fields import (
    CONDITION_FIELD_CATALOG,
    ConditionFieldDef,
    ModuleName,
    OrganizationType,
    condition_fields_for,
    is_condition_field,
)
from workflow_kernel.domain.connection_rules import (
    Connection,
    connection_rejection_reason,
    is_valid_connection,
)
from workflow_kernel.domain.graph import (
    CREATABLE_NODE_TYPES,
    PAYLOAD_TYPES,
    TERMINAL_NODE_TYPES,
    ApprovalPayload,
    CcPayload,
    ConditionOperator,
    ConditionPayload,
    Edge,
    EdgeCondition,
    Node,
    NodeType,
    NotifyPayload,
    Position,
    TerminalPayload,
    WaitCondition,
    WaitPayload,
    WorkflowGraph,
    default_graph,
)
from workflow_kernel.domain.graph_codec import graph_from_json, graph_to_json
from workflow_kernel.domain.graph_validator import (
    ValidationFailure,
    ValidationFailureKind,
    validate,
)
from workflow_kernel.domain.publication import (
    PUBLICATION_TRANSITIONS,
    PublicationAction,
    PublicationPlan,
    PublicationState,
    plan_transition,
)
from workflow_kernel.domain.workflow_config import WorkflowConfig

__all__ = [
    "CONDITION_FIELD_CATALOG",
    "CREATABLE_NODE_TYPES",
    "PAYLOAD_TYPES",
    "PUBLICATION_TRANSITIONS",
    "TERMINAL_NODE_TYPES",
    "ApprovalPayload",
    "CcPayload",
    "ConditionFieldDef",
    "ConditionOperator",
    "ConditionPayload",
    "Connection",
    "Edge",
    "EdgeCondition",
    "ModuleName",
    "Node",
    "NodeType",
    "NotifyPayload",
    "OrganizationType",
    "Position",
    "PublicationAction",
    "PublicationPlan",
    "PublicationState",
    "TerminalPayload",
    "ValidationFailure",
    "ValidationFailureKind",
    "WaitCondition",
    "WaitPayload",
    "WorkflowConfig",
    "WorkflowGraph",
    "condition_fields_for",
    "connection_rejection_reason",
    "default_graph",
    "graph_from_json",
    "graph_to_json",
    "is_condition_field",
    "is_valid_connection",
    "plan_transition",
    "validate",
]
