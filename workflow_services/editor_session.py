"""
workflow_services.editor_session -- Canvas editor session over one graph.

Responsibility:
    Owns the live ``WorkflowGraph`` while an author edits it and exposes the
    named mutation commands behind the visual designer (add/remove/update
    nodes and edges), the single-selection slot, and an undo/redo command
    log.  Rendering is out of scope; every command is synchronous and
    headless.

Architecture position:
    Services -- stateful, in-memory only.  May import from
    workflow_kernel.domain and workflow_config.  Never touches the database;
    ``WorkflowDesigner`` persists ``snapshot()`` results.

Invariants enforced:
    - The selection holds at most one of (node id, edge id).
    - START and END are neither created nor removed here.
    - Every edge passes ``connection_rejection_reason`` before it is added.
    - A node's payload only ever carries its own type's fields.
    - Each successful command is recorded once; undo/redo restore node and
      edge insertion order exactly.

Failure modes:
    - NodeNotFoundError / EdgeNotFoundError for unknown ids.
    - NodeTypeNotCreatableError for START, END, CONDITION_WAIT or an
      unknown type.
    - ProtectedNodeError when removing START or END.
    - InvalidConnectionError when the connection rules reject an edge.
    - PayloadFieldError for a property foreign to the node's type.
    - InvalidPropertyValueError for a value that cannot be converted to its
      field (a position without x/y, a non-list approver set, an unknown
      operator or wait condition).
    - UnknownConditionFieldError for a condition field outside the module
      catalog.
    - NothingToUndoError / NothingToRedoError on an empty log.
    A failed command leaves the graph, the log and the selection unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Literal
from uuid import uuid4

from workflow_config.schema import EditorSettings
from workflow_kernel.domain.condition_fields import ModuleName, is_condition_field
from workflow_kernel.domain.connection_rules import (
    Connection,
    connection_rejection_reason,
    is_valid_connection,
)
from workflow_kernel.domain.graph import (
    CREATABLE_NODE_TYPES,
    TERMINAL_NODE_TYPES,
    ConditionOperator,
    Edge,
    EdgeCondition,
    Node,
    NodeType,
    Position,
    WaitCondition,
    WorkflowGraph,
    payload_field_names,
    with_condition,
)
from workflow_kernel.exceptions import (
    InvalidConnectionError,
    InvalidPropertyValueError,
    NodeTypeNotCreatableError,
    NothingToRedoError,
    NothingToUndoError,
    PayloadFieldError,
    ProtectedNodeError,
    UnknownConditionFieldError,
)
from workflow_kernel.logging_config import get_logger

logger = get_logger("services.editor_session")

TRUE_HANDLE = "true"
FALSE_HANDLE = "false"

_BRANCH_CONDITIONS: dict[str, EdgeCondition] = {
    TRUE_HANDLE: EdgeCondition.CONDITION_TRUE,
    FALSE_HANDLE: EdgeCondition.CONDITION_FALSE,
}

_NODE: Literal["node"] = "node"
_EDGE: Literal["edge"] = "edge"


def default_node_id() -> str:
    return f"node_{uuid4().hex[:12]}"


# ---------------------------------------------------------------------------
# Selection and command log
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Selection:
    """What the properties panel is showing. At most one id is set."""

    node_id: str | None = None
    edge_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.node_id is None and self.edge_id is None


@dataclass(frozen=True)
class Change:
    """One primitive graph write.

    ``before`` / ``after`` are the node or edge prior to and after the
    write (``None`` when absent); ``index`` is its insertion position at the
    moment of the write.
    """

    kind: Literal["node", "edge"]
    item_id: str
    before: Node | Edge | None
    after: Node | Edge | None
    index: int


@dataclass(frozen=True)
class EditCommand:
    """A named, reversible editor command."""

    name: str
    changes: tuple[Change, ...]

    @property
    def node_ids(self) -> list[str]:
        return [c.item_id for c in self.changes if c.kind == _NODE]

    @property
    def edge_ids(self) -> list[str]:
        return [c.item_id for c in self.changes if c.kind == _EDGE]


def _write(graph: WorkflowGraph, change: Change, forward: bool) -> None:
    target, other = (change.after, change.before) if forward else (change.before, change.after)
    if change.kind == _NODE:
        setter, remover = graph.set_node, graph.remove_node
    else:
        setter, remover = graph.set_edge, graph.remove_edge

    if target is None:
        remover(change.item_id)
    elif other is None:
        setter(target, change.index)
    else:
        setter(target)


class _Recorder:
    """Applies writes to the graph and remembers them for the log."""

    def __init__(self, graph: WorkflowGraph) -> None:
        self._graph = graph
        self.changes: list[Change] = []

    def put_node(self, node: Node) -> None:
        graph = self._graph
        if graph.has_node(node.id):
            before, index = graph.get_node(node.id), graph.node_index(node.id)
        else:
            before, index = None, len(graph)
        graph.set_node(node)
        self.changes.append(Change(_NODE, node.id, before, node, index))

    def drop_node(self, node_id: str) -> None:
        index = self._graph.node_index(node_id)
        before = self._graph.remove_node(node_id)
        self.changes.append(Change(_NODE, node_id, before, None, index))

    def put_edge(self, edge: Edge) -> None:
        graph = self._graph
        if graph.has_edge(edge.id):
            before, index = graph.get_edge(edge.id), graph.edge_index(edge.id)
        else:
            before, index = None, len(graph.edges())
        graph.set_edge(edge)
        self.changes.append(Change(_EDGE, edge.id, before, edge, index))

    def drop_edge(self, edge_id: str) -> None:
        index = self._graph.edge_index(edge_id)
        before = self._graph.remove_edge(edge_id)
        self.changes.append(Change(_EDGE, edge_id, before, None, index))


# ---------------------------------------------------------------------------
# Property coercion
# ---------------------------------------------------------------------------


def _as_str_tuple(value: Iterable[Any] | None) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _as_optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _as_position(value: Position | Mapping[str, Any] | None) -> Position | None:
    if value is None or isinstance(value, Position):
        return value
    return Position(x=float(value["x"]), y=float(value["y"]))


_PAYLOAD_COERCERS: dict[str, Callable[[Any], Any]] = {
    "users": _as_str_tuple,
    "roles": _as_str_tuple,
    "email_template": _as_optional_str,
    "field": _as_optional_str,
    "operator": lambda v: None if v in (None, "") else ConditionOperator(v),
    "value": _as_optional_str,
    "value2": _as_optional_str,
    "wait_condition": lambda v: None if v in (None, "") else WaitCondition(v),
}


def _coerce(node_id: str, key: str, coercer: Callable[[Any], Any], value: Any) -> Any:
    try:
        return coercer(value)
    except KeyError as exc:
        raise InvalidPropertyValueError(node_id, key, value, f"missing {exc}") from None
    except (TypeError, ValueError) as exc:
        raise InvalidPropertyValueError(node_id, key, value, str(exc)) from None


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class CanvasEditorSession:
    """
    Headless editing session over one workflow graph.

    Contract:
        The session owns ``graph``; callers read it but mutate only
        through the commands below.  ``snapshot()`` hands out an
        independent copy for persistence.
    Guarantees:
        - Commands either apply completely or raise without side effects.
        - ``undo()`` after any command sequence restores the exact prior
          graph, including insertion order.
    Non-goals:
        - No persistence, no validation of publishability.
    """

    def __init__(
        self,
        graph: WorkflowGraph,
        module_name: ModuleName | str | None = None,
        settings: EditorSettings | None = None,
        node_id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._graph = graph
        self._module = ModuleName(module_name) if module_name is not None else None
        self._settings = settings or EditorSettings()
        self._new_node_id = node_id_factory or default_node_id
        self._selection = Selection()
        self._undo: list[EditCommand] = []
        self._redo: list[EditCommand] = []
        self._dirty = False
        self.session_id = uuid4().hex

    # -- read access ----------------------------------------------------------

    @property
    def graph(self) -> WorkflowGraph:
        return self._graph

    @property
    def module_name(self) -> ModuleName | None:
        return self._module

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def selected_node(self) -> Node | None:
        if self._selection.node_id is None:
            return None
        return self._graph.get_node(self._selection.node_id)

    @property
    def selected_edge(self) -> Edge | None:
        if self._selection.edge_id is None:
            return None
        return self._graph.get_edge(self._selection.edge_id)

    def snapshot(self) -> WorkflowGraph:
        """Independent copy of the current graph."""
        return self._graph.copy()

    # -- selection ------------------------------------------------------------

    def select_node(self, node_id: str) -> Node:
        node = self._graph.get_node(node_id)
        self._selection = Selection(node_id=node_id)
        return node

    def select_edge(self, edge_id: str) -> Edge:
        edge = self._graph.get_edge(edge_id)
        self._selection = Selection(edge_id=edge_id)
        return edge

    def close_panel(self) -> None:
        self._selection = Selection()

    # -- node commands --------------------------------------------------------

    def add_node(self, node_type: NodeType | str) -> Node:
        """Create a node of a palette type at the next stacked position."""
        try:
            node_type = NodeType(node_type)
        except ValueError:
            raise NodeTypeNotCreatableError(str(node_type)) from None
        if node_type not in CREATABLE_NODE_TYPES:
            raise NodeTypeNotCreatableError(node_type.value)

        settings = self._settings
        placed = sum(1 for n in self._graph if n.type not in TERMINAL_NODE_TYPES)
        node_id = self._new_node_id()
        while self._graph.has_node(node_id):
            node_id = self._new_node_id()

        node = Node(
            id=node_id,
            type=node_type,
            name=settings.node_name(node_type),
            position=Position(
                settings.new_node_x,
                settings.new_node_y + placed * settings.new_node_spacing,
            ),
        )
        recorder = _Recorder(self._graph)
        recorder.put_node(node)
        self._commit("add_node", recorder)
        self._selection = Selection(node_id=node.id)
        return node

    def remove_node(self, node_id: str) -> None:
        """Remove a node and every edge touching it."""
        node = self._graph.get_node(node_id)
        if not node.deletable:
            raise ProtectedNodeError(node_id, node.type.value)

        recorder = _Recorder(self._graph)
        for edge in self._graph.edges_touching(node_id):
            recorder.drop_edge(edge.id)
        recorder.drop_node(node_id)
        self._commit("remove_node", recorder)

    def update_node_properties(self, node_id: str, partial: Mapping[str, Any]) -> Node:
        """Merge ``partial`` into a node.

        Keys are ``name``, ``position`` and the payload fields of the
        node's own type.  A value that cannot be converted raises
        ``InvalidPropertyValueError`` naming the field.
        """
        node = self._graph.get_node(node_id)
        allowed = payload_field_names(node.type)

        name = node.name
        position = node.position
        payload_updates: dict[str, Any] = {}
        for key, value in partial.items():
            if key == "name":
                name = "" if value is None else str(value)
            elif key == "position":
                position = _coerce(node_id, key, _as_position, value)
            elif key in allowed:
                payload_updates[key] = _coerce(node_id, key, _PAYLOAD_COERCERS[key], value)
            else:
                raise PayloadFieldError(node_id, node.type.value, key)

        field_key = payload_updates.get("field")
        if (
            field_key is not None
            and self._module is not None
            and not is_condition_field(self._module, field_key)
        ):
            raise UnknownConditionFieldError(self._module.value, field_key)

        updated = replace(
            node,
            name=name,
            position=position,
            payload=replace(node.payload, **payload_updates),
        )
        if updated == node:
            return node

        recorder = _Recorder(self._graph)
        recorder.put_node(updated)
        self._commit("update_node_properties", recorder)
        return updated

    # -- edge commands --------------------------------------------------------

    def can_connect(self, source: str, target: str, source_handle: str | None = None) -> bool:
        return is_valid_connection(Connection(source, target, source_handle), self._graph)

    def add_edge(self, source: str, target: str, source_handle: str | None = None) -> Edge:
        """Connect two nodes if the connection rules allow it."""
        source_node = self._graph.get_node(source)
        self._graph.get_node(target)

        reason = connection_rejection_reason(
            Connection(source, target, source_handle), self._graph,
        )
        if reason is not None:
            logger.info(
                "connection_rejected",
                extra={
                    "session_id": self.session_id,
                    "source": source,
                    "target": target,
                    "reason": reason,
                },
            )
            raise InvalidConnectionError(source, target, reason)

        condition = EdgeCondition.ALWAYS
        if source_node.type == NodeType.CONDITION and source_handle in _BRANCH_CONDITIONS:
            condition = _BRANCH_CONDITIONS[source_handle]

        edge = Edge(
            id=self._graph.next_edge_id(source, target),
            source=source,
            target=target,
            condition=condition,
        )
        recorder = _Recorder(self._graph)
        recorder.put_edge(edge)
        self._commit("add_edge", recorder)
        return edge

    def update_edge_condition(self, edge_id: str, condition: EdgeCondition | str) -> Edge:
        edge = self._graph.get_edge(edge_id)
        updated = with_condition(
            edge, EdgeCondition(condition), self._settings.decision_labels,
        )
        recorder = _Recorder(self._graph)
        recorder.put_edge(updated)
        self._commit("update_edge_condition", recorder)
        return updated

    def remove_edge(self, edge_id: str) -> None:
        self._graph.get_edge(edge_id)
        recorder = _Recorder(self._graph)
        recorder.drop_edge(edge_id)
        self._commit("remove_edge", recorder)

    # -- command log ----------------------------------------------------------

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def history(self) -> list[str]:
        """Names of the applied commands, oldest first."""
        return [c.name for c in self._undo]

    def undo(self) -> EditCommand:
        if not self._undo:
            raise NothingToUndoError()
        command = self._undo.pop()
        for change in reversed(command.changes):
            _write(self._graph, change, forward=False)
        self._redo.append(command)
        self._after_replay()
        logger.debug(
            "editor_undo",
            extra={"session_id": self.session_id, "command": command.name},
        )
        return command

    def redo(self) -> EditCommand:
        if not self._redo:
            raise NothingToRedoError()
        command = self._redo.pop()
        for change in command.changes:
            _write(self._graph, change, forward=True)
        self._undo.append(command)
        self._after_replay()
        logger.debug(
            "editor_redo",
            extra={"session_id": self.session_id, "command": command.name},
        )
        return command

    # -- dirty tracking -------------------------------------------------------

    @property
    def is_dirty(self) -> bool:
        """True after any change since construction or ``mark_saved()``."""
        return self._dirty

    def mark_saved(self) -> None:
        self._dirty = False

    # -- internals ------------------------------------------------------------

    def _commit(self, name: str, recorder: _Recorder) -> None:
        command = EditCommand(name=name, changes=tuple(recorder.changes))
        self._undo.append(command)
        self._redo.clear()
        self._dirty = True
        self._prune_selection()
        logger.debug(
            "editor_command_applied",
            extra={
                "session_id": self.session_id,
                "command": name,
                "node_ids": command.node_ids,
                "edge_ids": command.edge_ids,
            },
        )

    def _after_replay(self) -> None:
        self._dirty = True
        self._prune_selection()

    def _prune_selection(self) -> None:
        sel = self._selection
        if sel.node_id is not None and not self._graph.has_node(sel.node_id):
            self._selection = Selection()
        elif sel.edge_id is not None and not self._graph.has_edge(sel.edge_id):
            self._selection = Selection()
