"""
Graph document codec (``workflow_kernel.domain.graph_codec``).

Responsibility
--------------
Converts a ``WorkflowGraph`` to and from the persisted ``workflow_nodes``
document::

    {"nodes": [NodeJson, ...], "edges": [EdgeJson, ...]}

Node JSON keys follow the stored shape (``users``, ``roles``,
``emailTemplate``, ``conditionField``, ``conditionOp``,
``conditionValue``, ``conditionValue2``, ``waitCondition``).

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  ZERO I/O.

Invariants enforced
-------------------
* Loading is strict: anything the model cannot represent raises
  ``MalformedGraphError``.  There is no fallback to a default graph.
* A payload key belonging to another node type is an error when it
  carries a value (``None``, ``""`` and ``[]`` count as unset).
* ``graph_from_json(graph_to_json(g)) == g``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields
from typing import Any

from workflow_kernel.domain.graph import (
    PAYLOAD_TYPES,
    ConditionOperator,
    Edge,
    EdgeCondition,
    Node,
    NodeType,
    Position,
    WaitCondition,
    WorkflowGraph,
    with_condition,
)
from workflow_kernel.exceptions import GraphError, MalformedGraphError

# Python payload field -> stored JSON key
PAYLOAD_JSON_KEYS: dict[str, str] = {
    "users": "users",
    "roles": "roles",
    "email_template": "emailTemplate",
    "field": "conditionField",
    "operator": "conditionOp",
    "value": "conditionValue",
    "value2": "conditionValue2",
    "wait_condition": "waitCondition",
}

_BASE_NODE_KEYS = frozenset({"id", "type", "name", "position"})

# Written by older editors alongside conditionField; carries no information
# beyond the catalog.
_IGNORED_NODE_KEYS: dict[NodeType, frozenset[str]] = {
    NodeType.CONDITION: frozenset({"conditionFieldType"}),
}

_ENUM_FIELDS: dict[str, type] = {
    "operator": ConditionOperator,
    "wait_condition": WaitCondition,
}

_LIST_FIELDS = frozenset({"users", "roles"})


# =========================================================================
# Encoding
# =========================================================================


def _encode_value(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, (ConditionOperator, WaitCondition)):
        return value.value
    return value


def node_to_json(node: Node) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": node.id,
        "type": node.type.value,
        "name": node.name,
    }
    if node.position is not None:
        data["position"] = {"x": node.position.x, "y": node.position.y}
    for f in fields(node.payload):
        value = getattr(node.payload, f.name)
        if value is None or value == ():
            continue
        data[PAYLOAD_JSON_KEYS[f.name]] = _encode_value(value)
    return data


def edge_to_json(edge: Edge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "condition": edge.condition.value,
    }


def graph_to_json(graph: WorkflowGraph) -> dict[str, list[dict[str, Any]]]:
    """Serialize ``graph`` into the persisted document shape."""
    return {
        "nodes": [node_to_json(n) for n in graph.nodes()],
        "edges": [edge_to_json(e) for e in graph.edges()],
    }


# =========================================================================
# Decoding
# =========================================================================


def _is_unset(value: Any) -> bool:
    return value is None or value == "" or value == []


def _decode_position(node_id: str, raw: Any) -> Position | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise MalformedGraphError(f"node {node_id} has a non-object position")
    x, y = raw.get("x"), raw.get("y")
    for coord in (x, y):
        if isinstance(coord, bool) or not isinstance(coord, (int, float)):
            raise MalformedGraphError(f"node {node_id} has a non-numeric position")
    return Position(x, y)


def _decode_field(node_id: str, name: str, raw: Any) -> Any:
    if name in _LIST_FIELDS:
        if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
            raise MalformedGraphError(f"node {node_id} field {name} must be a list of strings")
        return tuple(raw)
    if name in _ENUM_FIELDS:
        try:
            return _ENUM_FIELDS[name](raw)
        except ValueError:
            raise MalformedGraphError(
                f"node {node_id} has unknown {PAYLOAD_JSON_KEYS[name]} {raw!r}"
            ) from None
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise MalformedGraphError(f"node {node_id} field {name} must be text")
    return str(raw)


def node_from_json(data: Any) -> Node:
    if not isinstance(data, Mapping):
        raise MalformedGraphError("node entry is not an object")
    node_id = data.get("id")
    if not isinstance(node_id, str) or not node_id:
        raise MalformedGraphError("node entry without an id")
    try:
        node_type = NodeType(data.get("type"))
    except ValueError:
        raise MalformedGraphError(
            f"node {node_id} has unknown type {data.get('type')!r}"
        ) from None

    name = data.get("name")
    if name is None:
        name = ""
    if not isinstance(name, str):
        raise MalformedGraphError(f"node {node_id} has a non-text name")

    payload_cls = PAYLOAD_TYPES[node_type]
    own_keys = {PAYLOAD_JSON_KEYS[f.name]: f.name for f in fields(payload_cls)}
    ignored = _IGNORED_NODE_KEYS.get(node_type, frozenset())

    kwargs: dict[str, Any] = {}
    for key, raw in data.items():
        if key in _BASE_NODE_KEYS or key in ignored:
            continue
        if key in own_keys:
            if raw is not None:
                kwargs[own_keys[key]] = _decode_field(node_id, own_keys[key], raw)
            continue
        if not _is_unset(raw):
            raise MalformedGraphError(
                f"node {node_id} of type {node_type.value} carries foreign field {key!r}"
            )

    return Node(
        id=node_id,
        type=node_type,
        name=name,
        position=_decode_position(node_id, data.get("position")),
        payload=payload_cls(**kwargs),
    )


def graph_from_json(
    data: Any,
    decision_labels: Mapping[EdgeCondition, str] | None = None,
    config_id: str | None = None,
) -> WorkflowGraph:
    """Parse a persisted document.

    Raises:
        MalformedGraphError: when ``data`` is absent or cannot be represented.
    """
    try:
        return _graph_from_json(data, decision_labels)
    except MalformedGraphError as exc:
        if config_id is None or exc.config_id is not None:
            raise
        raise MalformedGraphError(exc.reason, config_id=config_id) from exc


def _graph_from_json(
    data: Any,
    decision_labels: Mapping[EdgeCondition, str] | None,
) -> WorkflowGraph:
    if data is None:
        raise MalformedGraphError("workflow_nodes is absent")
    if not isinstance(data, Mapping):
        raise MalformedGraphError("workflow_nodes is not an object")
    raw_nodes = data.get("nodes")
    if not isinstance(raw_nodes, list):
        raise MalformedGraphError("workflow_nodes has no node list")
    raw_edges = data.get("edges")
    if raw_edges is None:
        raw_edges = []
    if not isinstance(raw_edges, list):
        raise MalformedGraphError("workflow_nodes edges is not a list")

    graph = WorkflowGraph()
    try:
        for raw in raw_nodes:
            graph.add_node(node_from_json(raw))
        for raw in raw_edges:
            graph.add_edge(_edge_from_json(raw, graph, decision_labels))
    except GraphError as exc:
        raise MalformedGraphError(str(exc)) from exc
    return graph


def _edge_from_json(
    data: Any,
    graph: WorkflowGraph,
    decision_labels: Mapping[EdgeCondition, str] | None,
) -> Edge:
    if not isinstance(data, Mapping):
        raise MalformedGraphError("edge entry is not an object")
    source, target = data.get("source"), data.get("target")
    if not isinstance(source, str) or not isinstance(target, str):
        raise MalformedGraphError("edge entry without source and target")
    for endpoint in (source, target):
        if not graph.has_node(endpoint):
            raise MalformedGraphError(f"edge references unknown node {endpoint}")

    raw_condition = data.get("condition") or EdgeCondition.ALWAYS.value
    try:
        condition = EdgeCondition(raw_condition)
    except ValueError:
        raise MalformedGraphError(f"edge has unknown condition {raw_condition!r}") from None

    edge_id = data.get("id") or graph.next_edge_id(source, target)
    if not isinstance(edge_id, str):
        raise MalformedGraphError("edge id must be text")
    edge = Edge(id=edge_id, source=source, target=target)
    return with_condition(edge, condition, decision_labels)
