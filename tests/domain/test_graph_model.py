"""
Tests for the workflow graph model.

These tests verify:
- Nodes and edges are immutable and carry the payload of their type
- The graph container keeps insertion order and looks nodes up by id
- The default graph every new config starts from
"""

import pytest

from workflow_kernel.domain.graph import (
    END_NODE_ID,
    START_NODE_ID,
    ApprovalPayload,
    CcPayload,
    ConditionPayload,
    Edge,
    EdgeCondition,
    Node,
    NodeType,
    NotifyPayload,
    Position,
    TerminalPayload,
    WaitPayload,
    WorkflowGraph,
    default_graph,
    payload_field_names,
    with_condition,
)
from workflow_kernel.exceptions import (
    DuplicateEdgeError,
    DuplicateNodeError,
    EdgeNotFoundError,
    NodeNotFoundError,
    PayloadTypeMismatchError,
    SelfLoopError,
)


class TestNode:
    """Node value object."""

    @pytest.mark.parametrize(
        "node_type, payload_cls",
        [
            (NodeType.START, TerminalPayload),
            (NodeType.END, TerminalPayload),
            (NodeType.APPROVAL, ApprovalPayload),
            (NodeType.CC, CcPayload),
            (NodeType.NOTIFY, NotifyPayload),
            (NodeType.CONDITION, ConditionPayload),
            (NodeType.CONDITION_WAIT, WaitPayload),
        ],
    )
    def test_default_payload_matches_type(self, node_type, payload_cls):
        node = Node("n1", node_type)
        assert type(node.payload) is payload_cls

    def test_foreign_payload_rejected(self):
        with pytest.raises(PayloadTypeMismatchError) as exc_info:
            Node("a", NodeType.APPROVAL, payload=ConditionPayload(field="totalAmount"))
        assert exc_info.value.node_id == "a"
        assert exc_info.value.payload_type == "ConditionPayload"

    def test_node_is_frozen(self):
        node = Node("a", NodeType.APPROVAL, "Manager")
        with pytest.raises(AttributeError):
            node.name = "Director"

    def test_label_falls_back_to_id(self):
        assert Node("a", NodeType.CC).label == "a"
        assert Node("a", NodeType.CC, "Finance").label == "Finance"

    def test_terminals_are_not_deletable(self):
        assert not Node(START_NODE_ID, NodeType.START).deletable
        assert not Node(END_NODE_ID, NodeType.END).deletable
        assert Node("a", NodeType.NOTIFY).deletable

    def test_payload_field_names(self):
        assert payload_field_names(NodeType.START) == ()
        assert payload_field_names(NodeType.APPROVAL) == ("users", "roles")
        assert payload_field_names(NodeType.CONDITION) == (
            "field", "operator", "value", "value2",
        )


class TestEdge:
    """Edge value object."""

    def test_self_loop_rejected(self):
        with pytest.raises(SelfLoopError):
            Edge("e", "a", "a")

    def test_default_condition_is_always(self):
        assert Edge("e", "a", "b").condition == EdgeCondition.ALWAYS

    def test_decoration_not_part_of_equality(self):
        plain = Edge("e", "a", "b", EdgeCondition.APPROVED)
        decorated = Edge("e", "a", "b", EdgeCondition.APPROVED, label="Approve", animated=True)
        assert plain == decorated

    def test_with_decision_condition_labels_and_animates(self):
        edge = with_condition(Edge("e", "a", "b"), EdgeCondition.REJECTED)
        assert edge.condition == EdgeCondition.REJECTED
        assert edge.label == "Reject"
        assert edge.animated is True

    def test_with_other_condition_clears_label_keeps_animation(self):
        approved = with_condition(Edge("e", "a", "b"), EdgeCondition.APPROVED)
        edge = with_condition(approved, EdgeCondition.ALWAYS)
        assert edge.label is None
        assert edge.animated is True

    def test_custom_decision_labels(self):
        labels = {EdgeCondition.APPROVED: "OK", EdgeCondition.REJECTED: "No"}
        edge = with_condition(Edge("e", "a", "b"), EdgeCondition.APPROVED, labels)
        assert edge.label == "OK"


class TestWorkflowGraph:
    """Graph container accessors."""

    def test_get_and_set_node(self):
        graph = WorkflowGraph()
        graph.add_node(Node("a", NodeType.CC, "CC"))
        graph.set_node(Node("a", NodeType.CC, "Renamed"))
        assert graph.get_node("a").name == "Renamed"
        assert len(graph) == 1

    def test_missing_lookups_raise(self):
        graph = WorkflowGraph()
        with pytest.raises(NodeNotFoundError):
            graph.get_node("nope")
        with pytest.raises(EdgeNotFoundError):
            graph.get_edge("nope")

    def test_duplicates_rejected(self):
        graph = WorkflowGraph([Node("a", NodeType.CC), Node("b", NodeType.CC)])
        with pytest.raises(DuplicateNodeError):
            graph.add_node(Node("a", NodeType.NOTIFY))
        graph.add_edge(Edge("e", "a", "b"))
        with pytest.raises(DuplicateEdgeError):
            graph.add_edge(Edge("e", "b", "a"))

    def test_set_node_at_index_restores_order(self):
        graph = WorkflowGraph([Node(i, NodeType.CC) for i in ("a", "b", "c")])
        removed = graph.remove_node("b")
        graph.set_node(removed, 1)
        assert [n.id for n in graph.nodes()] == ["a", "b", "c"]

    def test_outgoing_and_incoming_edges(self):
        graph = WorkflowGraph(
            [Node(i, NodeType.CC) for i in ("a", "b", "c")],
            [Edge("e1", "a", "b"), Edge("e2", "a", "c"), Edge("e3", "b", "c")],
        )
        assert [e.id for e in graph.outgoing_edges("a")] == ["e1", "e2"]
        assert [e.id for e in graph.incoming_edges("c")] == ["e2", "e3"]
        assert [e.id for e in graph.edges_touching("b")] == ["e1", "e3"]

    def test_next_edge_id_suffixes_on_collision(self):
        graph = WorkflowGraph([Node("a", NodeType.CC), Node("b", NodeType.CC)])
        assert graph.next_edge_id("a", "b") == "e_a-b"
        graph.add_edge(Edge("e_a-b", "a", "b"))
        assert graph.next_edge_id("a", "b") == "e_a-b_2"

    def test_copy_is_independent(self):
        graph = default_graph()
        clone = graph.copy()
        clone.add_node(Node("x", NodeType.CC))
        assert "x" in clone
        assert "x" not in graph

    def test_equality_ignores_order(self):
        a = WorkflowGraph([Node("a", NodeType.CC), Node("b", NodeType.CC)])
        b = WorkflowGraph([Node("b", NodeType.CC), Node("a", NodeType.CC)])
        assert a == b


class TestDefaultGraph:
    """The graph a new workflow config is created with."""

    def test_two_nodes_one_edge(self):
        graph = default_graph()
        assert [n.type for n in graph.nodes()] == [NodeType.START, NodeType.END]
        (edge,) = graph.edges()
        assert (edge.source, edge.target) == (START_NODE_ID, END_NODE_ID)
        assert edge.id == "e_start-end"
        assert edge.condition == EdgeCondition.ALWAYS

    def test_positions(self):
        graph = default_graph()
        assert graph.get_node(START_NODE_ID).position == Position(250, 50)
        assert graph.get_node(END_NODE_ID).position == Position(250, 400)

    def test_custom_names(self):
        graph = default_graph("Begin", "Finish")
        assert graph.get_node(START_NODE_ID).name == "Begin"
        assert graph.get_node(END_NODE_ID).name == "Finish"
