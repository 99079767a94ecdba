"""
Typed Exception Hierarchy for the Workflow Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The visual editor, the persistence adapter and the tooling scripts all need
to react to specific failures (a rejected connection, a protected node, a
stale revision) without parsing message strings.  Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example:
    try:
        designer.publish()
    except GraphValidationError as e:
        show_notice(e.reason)                    # user-facing text
        highlight(e.node_ids)                    # structured data
    except OptimisticLockError as e:
        offer_reload(e.entity_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    WorkflowKernelError (base)
    |
    +-- GraphError
    |   +-- NodeNotFoundError
    |   +-- EdgeNotFoundError
    |   +-- DuplicateNodeError
    |   +-- DuplicateEdgeError
    |   +-- SelfLoopError
    |   +-- PayloadTypeMismatchError
    |
    +-- EditorError
    |   +-- NodeTypeNotCreatableError
    |   +-- ProtectedNodeError
    |   +-- InvalidConnectionError
    |   +-- PayloadFieldError
    |   +-- UnknownConditionFieldError
    |   +-- NothingToUndoError
    |   +-- NothingToRedoError
    |
    +-- SerializationError
    |   +-- MalformedGraphError
    |
    +-- PublicationError
    |   +-- GraphValidationError
    |   +-- OperationInProgressError
    |
    +-- WorkflowConfigError
    |   +-- WorkflowConfigNotFoundError
    |   +-- InvalidWorkflowConfigError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- PersistenceError
        +-- PersistenceFailedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Graph           | NODE_NOT_FOUND              | Node id not in graph
                | EDGE_NOT_FOUND              | Edge id not in graph
                | DUPLICATE_NODE              | Node id already used
                | DUPLICATE_EDGE              | Edge id already used
                | SELF_LOOP                   | Edge source == target
                | PAYLOAD_TYPE_MISMATCH       | Payload class does not match node type
----------------|-----------------------------|-----------------------------------------
Editor          | NODE_TYPE_NOT_CREATABLE     | add_node(START/END/CONDITION_WAIT)
                | PROTECTED_NODE              | remove_node(START/END)
                | INVALID_CONNECTION          | Connection rule rejected an edge
                | PAYLOAD_FIELD               | Property foreign to the node type
                | UNKNOWN_CONDITION_FIELD     | Field outside the module catalog
                | NOTHING_TO_UNDO             | Undo stack empty
                | NOTHING_TO_REDO             | Redo stack empty
----------------|-----------------------------|-----------------------------------------
Serialization   | MALFORMED_GRAPH             | Persisted workflow_nodes unreadable
----------------|-----------------------------|-----------------------------------------
Publication     | GRAPH_VALIDATION_FAILED     | Publish blocked by the validator
                | OPERATION_IN_PROGRESS       | Save/publish already in flight
----------------|-----------------------------|-----------------------------------------
Config          | WORKFLOW_CONFIG_NOT_FOUND   | Config id doesn't exist
                | INVALID_WORKFLOW_CONFIG     | Blank name, unknown module/org type
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Revision token mismatch
----------------|-----------------------------|-----------------------------------------
Persistence     | PERSISTENCE_FAILED          | Database error on save/publish
"""


class WorkflowKernelError(Exception):
    """
    Base exception for all workflow kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "WORKFLOW_KERNEL_ERROR"


# Graph model exceptions


class GraphError(WorkflowKernelError):
    """Base exception for graph structure errors."""

    code: str = "GRAPH_ERROR"


class NodeNotFoundError(GraphError):
    """Node with given ID is not part of the graph."""

    code: str = "NODE_NOT_FOUND"

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class EdgeNotFoundError(GraphError):
    """Edge with given ID is not part of the graph."""

    code: str = "EDGE_NOT_FOUND"

    def __init__(self, edge_id: str):
        self.edge_id = edge_id
        super().__init__(f"Edge not found: {edge_id}")


class DuplicateNodeError(GraphError):
    """Node ID is already used in the graph."""

    code: str = "DUPLICATE_NODE"

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Duplicate node id: {node_id}")


class DuplicateEdgeError(GraphError):
    """Edge ID is already used in the graph."""

    code: str = "DUPLICATE_EDGE"

    def __init__(self, edge_id: str):
        self.edge_id = edge_id
        super().__init__(f"Duplicate edge id: {edge_id}")


class SelfLoopError(GraphError):
    """An edge may not start and end at the same node."""

    code: str = "SELF_LOOP"

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Edge cannot connect node {node_id} to itself")


class PayloadTypeMismatchError(GraphError):
    """Payload class does not belong to the node's type."""

    code: str = "PAYLOAD_TYPE_MISMATCH"

    def __init__(self, node_id: str, node_type: str, payload_type: str):
        self.node_id = node_id
        self.node_type = node_type
        self.payload_type = payload_type
        super().__init__(
            f"Node {node_id} of type {node_type} cannot carry a {payload_type}"
        )


# Editor session exceptions


class EditorError(WorkflowKernelError):
    """Base exception for rejected editor commands."""

    code: str = "EDITOR_ERROR"


class NodeTypeNotCreatableError(EditorError):
    """The node type cannot be created from the palette."""

    code: str = "NODE_TYPE_NOT_CREATABLE"

    def __init__(self, node_type: str):
        self.node_type = node_type
        super().__init__(f"Node type {node_type} cannot be added from the editor")


class ProtectedNodeError(EditorError):
    """START and END nodes cannot be deleted."""

    code: str = "PROTECTED_NODE"

    def __init__(self, node_id: str, node_type: str):
        self.node_id = node_id
        self.node_type = node_type
        super().__init__(f"{node_type} node {node_id} cannot be removed")


class InvalidConnectionError(EditorError):
    """A connection-validity rule rejected the candidate edge."""

    code: str = "INVALID_CONNECTION"

    def __init__(self, source: str, target: str, reason: str):
        self.source = source
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot connect {source} -> {target}: {reason}")


class PayloadFieldError(EditorError):
    """A property does not exist on the node's payload type."""

    code: str = "PAYLOAD_FIELD"

    def __init__(self, node_id: str, node_type: str, field_name: str):
        self.node_id = node_id
        self.node_type = node_type
        self.field_name = field_name
        super().__init__(
            f"Field '{field_name}' is not valid for {node_type} node {node_id}"
        )


class InvalidPropertyValueError(EditorError):
    """A property value cannot be converted to the field's type."""

    code: str = "INVALID_PROPERTY_VALUE"

    def __init__(self, node_id: str, field_name: str, value: object, detail: str):
        self.node_id = node_id
        self.field_name = field_name
        self.value = repr(value)
        self.detail = detail
        super().__init__(
            f"Invalid value {value!r} for field '{field_name}' of node {node_id}: {detail}"
        )


class UnknownConditionFieldError(EditorError):
    """The condition field is not in the module's field catalog."""

    code: str = "UNKNOWN_CONDITION_FIELD"

    def __init__(self, module_name: str, field_key: str):
        self.module_name = module_name
        self.field_key = field_key
        super().__init__(
            f"Condition field '{field_key}' is not available for module {module_name}"
        )


class NothingToUndoError(EditorError):
    """Undo requested with an empty command log."""

    code: str = "NOTHING_TO_UNDO"

    def __init__(self):
        super().__init__("Nothing to undo")


class NothingToRedoError(EditorError):
    """Redo requested with an empty redo stack."""

    code: str = "NOTHING_TO_REDO"

    def __init__(self):
        super().__init__("Nothing to redo")


# Serialization exceptions


class SerializationError(WorkflowKernelError):
    """Base exception for graph document errors."""

    code: str = "SERIALIZATION_ERROR"


class MalformedGraphError(SerializationError):
    """
    Persisted workflow_nodes document cannot be read.

    Raised instead of silently substituting a default graph, so that data
    loss is visible to the author.
    """

    code: str = "MALFORMED_GRAPH"

    def __init__(self, reason: str, config_id: str | None = None):
        self.reason = reason
        self.config_id = config_id
        where = f" in config {config_id}" if config_id else ""
        super().__init__(f"Malformed workflow graph{where}: {reason}")


# Publication exceptions


class PublicationError(WorkflowKernelError):
    """Base exception for draft/publish lifecycle errors."""

    code: str = "PUBLICATION_ERROR"


class GraphValidationError(PublicationError):
    """The graph failed publish validation."""

    code: str = "GRAPH_VALIDATION_FAILED"

    def __init__(self, kind: str, reason: str, node_ids: tuple[str, ...] = ()):
        self.kind = kind
        self.reason = reason
        self.node_ids = node_ids
        super().__init__(reason)


class OperationInProgressError(PublicationError):
    """A save or publish is already running for this designer."""

    code: str = "OPERATION_IN_PROGRESS"

    def __init__(self, config_id: str):
        self.config_id = config_id
        super().__init__(f"A save is already in progress for config {config_id}")


# Workflow config exceptions


class WorkflowConfigError(WorkflowKernelError):
    """Base exception for workflow config records."""

    code: str = "WORKFLOW_CONFIG_ERROR"


class WorkflowConfigNotFoundError(WorkflowConfigError):
    """Workflow config with given ID was not found."""

    code: str = "WORKFLOW_CONFIG_NOT_FOUND"

    def __init__(self, config_id: str):
        self.config_id = config_id
        super().__init__(f"Workflow config not found: {config_id}")


class InvalidWorkflowConfigError(WorkflowConfigError):
    """Workflow config attributes are invalid."""

    code: str = "INVALID_WORKFLOW_CONFIG"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid workflow config {field_name}: {reason}")


# Concurrency exceptions


class ConcurrencyError(WorkflowKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_revision: int | None = None,
        actual_revision: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another session"
        )


# Persistence exceptions


class PersistenceError(WorkflowKernelError):
    """Base exception for storage failures."""

    code: str = "PERSISTENCE_ERROR"


class PersistenceFailedError(PersistenceError):
    """Saving to the store failed; the in-memory graph is unchanged."""

    code: str = "PERSISTENCE_FAILED"

    def __init__(self, operation: str, config_id: str):
        self.operation = operation
        self.config_id = config_id
        super().__init__(f"Failed to {operation} workflow config {config_id}")
