"""
Connection-validity rules (``workflow_kernel.domain.connection_rules``).

Responsibility
--------------
Structural preconditions the editor checks before an edge is added:

* END may never be an edge source.
* START may never be an edge target.
* No self-loops.

No fan-out limits or duplicate-edge checks are applied here, and edge
conditions are not compared with the source node's type.

Architecture position
---------------------
**Kernel domain layer** -- pure predicates over a ``WorkflowGraph``.
ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from workflow_kernel.domain.graph import NodeType, WorkflowGraph


@dataclass(frozen=True)
class Connection:
    """A candidate edge as proposed by the canvas.

    ``source_handle`` names the output port the drag started from
    (``"true"`` / ``"false"`` on CONDITION nodes).
    """

    source: str
    target: str
    source_handle: str | None = None


REASON_SELF_LOOP = "a node cannot connect to itself"
REASON_END_AS_SOURCE = "the end node cannot have outgoing connections"
REASON_START_AS_TARGET = "the start node cannot have incoming connections"
REASON_UNKNOWN_NODE = "both endpoints must exist in the graph"


def connection_rejection_reason(
    connection: Connection,
    graph: WorkflowGraph,
) -> str | None:
    """Return why ``connection`` is not allowed, or ``None`` if it is."""
    if connection.source == connection.target:
        return REASON_SELF_LOOP
    if not graph.has_node(connection.source) or not graph.has_node(connection.target):
        return REASON_UNKNOWN_NODE
    if graph.get_node(connection.source).type == NodeType.END:
        return REASON_END_AS_SOURCE
    if graph.get_node(connection.target).type == NodeType.START:
        return REASON_START_AS_TARGET
    return None


def is_valid_connection(connection: Connection, graph: WorkflowGraph) -> bool:
    return connection_rejection_reason(connection, graph) is None
