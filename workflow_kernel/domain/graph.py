"""
Workflow graph model (``workflow_kernel.domain.graph``).

Responsibility
--------------
In-memory representation of one approval workflow: typed nodes, conditioned
edges and an insertion-ordered container with structural accessors.  The
per-node payload is a tagged union keyed by ``NodeType`` so that, for
example, a condition triple can never appear on an APPROVAL node.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects plus one mutable container.
ZERO I/O.  No imports from ``db/``, ``models/``, ``services/`` or outer
layers.  The container holds no validation logic; connection rules live in
``connection_rules`` and publish checks in ``graph_validator``.

Invariants enforced
-------------------
* A ``Node``'s payload class is exactly ``PAYLOAD_TYPES[node.type]``.
* An ``Edge`` never has ``source == target``.
* Node ids and edge ids are unique within a ``WorkflowGraph``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum

from workflow_kernel.exceptions import (
    DuplicateEdgeError,
    DuplicateNodeError,
    EdgeNotFoundError,
    NodeNotFoundError,
    PayloadTypeMismatchError,
    SelfLoopError,
)

START_NODE_ID = "start"
END_NODE_ID = "end"


# =========================================================================
# Enumerations
# =========================================================================


class NodeType(str, Enum):
    """Kinds of workflow nodes."""

    START = "START"
    END = "END"
    APPROVAL = "APPROVAL"
    CC = "CC"
    NOTIFY = "NOTIFY"
    CONDITION = "CONDITION"
    # Recognized in stored graphs only; never offered by the editor palette.
    CONDITION_WAIT = "CONDITION_WAIT"


TERMINAL_NODE_TYPES: frozenset[NodeType] = frozenset({
    NodeType.START,
    NodeType.END,
})

CREATABLE_NODE_TYPES: frozenset[NodeType] = frozenset({
    NodeType.APPROVAL,
    NodeType.CC,
    NodeType.NOTIFY,
    NodeType.CONDITION,
})


class EdgeCondition(str, Enum):
    """When a runtime consumer should follow an edge."""

    ALWAYS = "ALWAYS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CONDITION_TRUE = "CONDITION_TRUE"
    CONDITION_FALSE = "CONDITION_FALSE"


DECISION_CONDITIONS: frozenset[EdgeCondition] = frozenset({
    EdgeCondition.APPROVED,
    EdgeCondition.REJECTED,
})


class ConditionOperator(str, Enum):
    """Comparison operators available on CONDITION nodes."""

    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"
    NEQ = "neq"


class WaitCondition(str, Enum):
    """The two wait conditions a CONDITION_WAIT node may name."""

    PURCHASE_ALL_INBOUND = "PURCHASE_ALL_INBOUND"
    FINANCE_PAID = "FINANCE_PAID"


# =========================================================================
# Node payloads (tagged union)
# =========================================================================


@dataclass(frozen=True)
class Position:
    """Canvas coordinates. Presentation only."""

    x: float
    y: float


@dataclass(frozen=True)
class TerminalPayload:
    """START and END carry no configuration."""


@dataclass(frozen=True)
class ApprovalPayload:
    """Assigned approvers. ``users`` must be non-empty to publish."""

    users: tuple[str, ...] = ()
    roles: tuple[str, ...] = ()


@dataclass(frozen=True)
class CcPayload:
    """Carbon-copy recipients; roles such as ``"applicant"`` are shortcuts."""

    users: tuple[str, ...] = ()
    roles: tuple[str, ...] = ()


@dataclass(frozen=True)
class NotifyPayload:
    """Notification recipients and an optional template reference."""

    users: tuple[str, ...] = ()
    roles: tuple[str, ...] = ()
    email_template: str | None = None


@dataclass(frozen=True)
class ConditionPayload:
    """Comparison triple evaluated against a business-record field.

    ``field`` is drawn from the module's condition-field catalog.
    ``value2`` is only meaningful for two-value comparisons.
    """

    field: str | None = None
    operator: ConditionOperator | None = None
    value: str | None = None
    value2: str | None = None


@dataclass(frozen=True)
class WaitPayload:
    """Configuration of a CONDITION_WAIT node."""

    wait_condition: WaitCondition | None = None


NodePayload = (
    TerminalPayload
    | ApprovalPayload
    | CcPayload
    | NotifyPayload
    | ConditionPayload
    | WaitPayload
)

PAYLOAD_TYPES: dict[NodeType, type] = {
    NodeType.START: TerminalPayload,
    NodeType.END: TerminalPayload,
    NodeType.APPROVAL: ApprovalPayload,
    NodeType.CC: CcPayload,
    NodeType.NOTIFY: NotifyPayload,
    NodeType.CONDITION: ConditionPayload,
    NodeType.CONDITION_WAIT: WaitPayload,
}


def empty_payload(node_type: NodeType) -> NodePayload:
    """Return the unconfigured payload for ``node_type``."""
    return PAYLOAD_TYPES[node_type]()


def payload_field_names(node_type: NodeType) -> tuple[str, ...]:
    """Names of the payload fields that belong to ``node_type``."""
    return tuple(f.name for f in fields(PAYLOAD_TYPES[node_type]))


# =========================================================================
# Nodes and edges
# =========================================================================


@dataclass(frozen=True)
class Node:
    """A workflow step.

    Contract: frozen; ``payload`` defaults to ``empty_payload(type)``.
    Guarantees: the payload class always matches ``type``.
    """

    id: str
    type: NodeType
    name: str = ""
    position: Position | None = None
    payload: NodePayload | None = None

    def __post_init__(self) -> None:
        if self.payload is None:
            object.__setattr__(self, "payload", empty_payload(self.type))
        elif type(self.payload) is not PAYLOAD_TYPES[self.type]:
            raise PayloadTypeMismatchError(
                self.id, self.type.value, type(self.payload).__name__,
            )

    @property
    def label(self) -> str:
        """Text shown on the canvas and in validator messages."""
        return self.name or self.id

    @property
    def deletable(self) -> bool:
        return self.type not in TERMINAL_NODE_TYPES


@dataclass(frozen=True)
class Edge:
    """A directed connection between two nodes.

    ``label`` and ``animated`` are canvas decoration and take no part in
    equality.
    """

    id: str
    source: str
    target: str
    condition: EdgeCondition = EdgeCondition.ALWAYS
    label: str | None = field(default=None, compare=False)
    animated: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        if self.source == self.target:
            raise SelfLoopError(self.source)


DEFAULT_DECISION_LABELS: dict[EdgeCondition, str] = {
    EdgeCondition.APPROVED: "Approve",
    EdgeCondition.REJECTED: "Reject",
}


def with_condition(
    edge: Edge,
    condition: EdgeCondition,
    decision_labels: Mapping[EdgeCondition, str] | None = None,
) -> Edge:
    """Return ``edge`` carrying ``condition`` and the matching decoration.

    APPROVED / REJECTED edges are labelled and animated; any other
    condition clears the label and keeps the animation flag.
    """
    labels = DEFAULT_DECISION_LABELS if decision_labels is None else decision_labels
    if condition in DECISION_CONDITIONS:
        return replace(edge, condition=condition, label=labels[condition], animated=True)
    return replace(edge, condition=condition, label=None)


# =========================================================================
# Graph container
# =========================================================================


def _insert_at(items: dict, key: str, value: object, index: int) -> dict:
    ordered = list(items.items())
    ordered.insert(index, (key, value))
    return dict(ordered)


class WorkflowGraph:
    """Insertion-ordered nodes and edges of one workflow.

    Equality compares the node and edge mappings by id; ordering is not
    significant.
    """

    def __init__(
        self,
        nodes: Iterable[Node] = (),
        edges: Iterable[Edge] = (),
    ) -> None:
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        for node in nodes:
            self.add_node(node)
        for edge in edges:
            self.add_edge(edge)

    # -- nodes --------------------------------------------------------------

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def add_node(self, node: Node) -> None:
        if node.id in self._nodes:
            raise DuplicateNodeError(node.id)
        self._nodes[node.id] = node

    def set_node(self, node: Node, index: int | None = None) -> None:
        """Insert or replace ``node``; ``index`` re-inserts at that position."""
        if index is None:
            self._nodes[node.id] = node
            return
        self._nodes.pop(node.id, None)
        self._nodes = _insert_at(self._nodes, node.id, node, index)

    def remove_node(self, node_id: str) -> Node:
        """Remove and return a node. Touching edges are left in place."""
        node = self.get_node(node_id)
        del self._nodes[node_id]
        return node

    def node_index(self, node_id: str) -> int:
        self.get_node(node_id)
        return list(self._nodes).index(node_id)

    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    def nodes_of_type(self, node_type: NodeType) -> list[Node]:
        return [n for n in self._nodes.values() if n.type == node_type]

    # -- edges --------------------------------------------------------------

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def get_edge(self, edge_id: str) -> Edge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise EdgeNotFoundError(edge_id) from None

    def add_edge(self, edge: Edge) -> None:
        if edge.id in self._edges:
            raise DuplicateEdgeError(edge.id)
        self._edges[edge.id] = edge

    def set_edge(self, edge: Edge, index: int | None = None) -> None:
        """Insert or replace ``edge``; ``index`` re-inserts at that position."""
        if index is None:
            self._edges[edge.id] = edge
            return
        self._edges.pop(edge.id, None)
        self._edges = _insert_at(self._edges, edge.id, edge, index)

    def remove_edge(self, edge_id: str) -> Edge:
        edge = self.get_edge(edge_id)
        del self._edges[edge_id]
        return edge

    def edge_index(self, edge_id: str) -> int:
        self.get_edge(edge_id)
        return list(self._edges).index(edge_id)

    def edges(self) -> list[Edge]:
        return list(self._edges.values())

    def outgoing_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self._edges.values() if e.source == node_id]

    def incoming_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self._edges.values() if e.target == node_id]

    def edges_touching(self, node_id: str) -> list[Edge]:
        return [
            e for e in self._edges.values()
            if e.source == node_id or e.target == node_id
        ]

    def next_edge_id(self, source: str, target: str) -> str:
        """Canvas-style edge id ``e_<source>-<target>``, suffixed if taken."""
        base = f"e_{source}-{target}"
        if base not in self._edges:
            return base
        n = 2
        while f"{base}_{n}" in self._edges:
            n += 1
        return f"{base}_{n}"

    # -- whole graph --------------------------------------------------------

    def copy(self) -> WorkflowGraph:
        """Independent container sharing the immutable nodes and edges."""
        clone = WorkflowGraph()
        clone._nodes = dict(self._nodes)
        clone._edges = dict(self._edges)
        return clone

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkflowGraph):
            return NotImplemented
        return self._nodes == other._nodes and self._edges == other._edges

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<WorkflowGraph nodes={len(self._nodes)} edges={len(self._edges)}>"


def default_graph(start_name: str = "Start", end_name: str = "End") -> WorkflowGraph:
    """The two-node graph every new workflow config starts from."""
    return WorkflowGraph(
        nodes=[
            Node(
                id=START_NODE_ID,
                type=NodeType.START,
                name=start_name,
                position=Position(250, 50),
            ),
            Node(
                id=END_NODE_ID,
                type=NodeType.END,
                name=end_name,
                position=Position(250, 400),
            ),
        ],
        edges=[
            Edge(
                id=f"e_{START_NODE_ID}-{END_NODE_ID}",
                source=START_NODE_ID,
                target=END_NODE_ID,
                condition=EdgeCondition.ALWAYS,
                animated=True,
            ),
        ],
    )
