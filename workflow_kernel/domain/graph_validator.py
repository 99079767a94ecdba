"""
Publish-time graph validator (``workflow_kernel.domain.graph_validator``).

Responsibility
--------------
Decides whether a workflow graph may go live.  Checks run in a fixed
order and the first failing check is returned:

1. Exactly one START and exactly one END node.
2. END is reachable from START (breadth-first over all edges; edge
   conditions are ignored for reachability).
3. No orphans: every node is visited by that same traversal.  All
   orphans are named in one message.
4. Every APPROVAL node has at least one assigned user.

Architecture position
---------------------
**Kernel domain layer** -- pure function.  ZERO I/O.  Runs only when a
publish is requested (client side in the designer, server side in the
persistence adapter); never on draft save.

Invariants enforced
-------------------
* Deterministic: same graph in, same verdict out.  Independent of any
  editor selection state.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum

from workflow_kernel.domain.graph import ApprovalPayload, NodeType, WorkflowGraph


class ValidationFailureKind(str, Enum):
    """Distinguishable reasons a graph cannot be published."""

    MISSING_TERMINALS = "missing_terminals"
    END_UNREACHABLE = "end_unreachable"
    ORPHAN_NODES = "orphan_nodes"
    MISSING_APPROVER = "missing_approver"


@dataclass(frozen=True)
class ValidationFailure:
    """First failing check. ``reason`` is the author-facing message."""

    kind: ValidationFailureKind
    reason: str
    node_ids: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.reason


def reachable_from(graph: WorkflowGraph, start_id: str) -> set[str]:
    """Ids visited by a breadth-first traversal from ``start_id``."""
    adjacency: dict[str, list[str]] = {}
    for edge in graph.edges():
        adjacency.setdefault(edge.source, []).append(edge.target)

    visited = {start_id}
    queue = deque([start_id])
    while queue:
        current = queue.popleft()
        for nxt in adjacency.get(current, ()):
            if nxt not in visited:
                visited.add(nxt)
                queue.append(nxt)
    return visited


def validate(graph: WorkflowGraph) -> ValidationFailure | None:
    """Return the first publish blocker of ``graph``, or ``None`` to pass."""
    starts = graph.nodes_of_type(NodeType.START)
    ends = graph.nodes_of_type(NodeType.END)
    if len(starts) != 1 or len(ends) != 1:
        return ValidationFailure(
            kind=ValidationFailureKind.MISSING_TERMINALS,
            reason=(
                "Workflow must contain exactly one start node and one end node "
                f"(found {len(starts)} start, {len(ends)} end)"
            ),
            node_ids=tuple(n.id for n in starts + ends),
        )
    start, end = starts[0], ends[0]

    visited = reachable_from(graph, start.id)
    if end.id not in visited:
        return ValidationFailure(
            kind=ValidationFailureKind.END_UNREACHABLE,
            reason="The start node cannot reach the end node; check the connections",
            node_ids=(start.id, end.id),
        )

    orphans = [n for n in graph.nodes() if n.id not in visited]
    if orphans:
        names = ", ".join(n.label for n in orphans)
        return ValidationFailure(
            kind=ValidationFailureKind.ORPHAN_NODES,
            reason=f"The following nodes are not connected to the main flow: {names}",
            node_ids=tuple(n.id for n in orphans),
        )

    for node in graph.nodes_of_type(NodeType.APPROVAL):
        payload = node.payload
        if not isinstance(payload, ApprovalPayload) or not payload.users:
            return ValidationFailure(
                kind=ValidationFailureKind.MISSING_APPROVER,
                reason=f"Approval node '{node.label}' has no approver configured",
                node_ids=(node.id,),
            )

    return None
