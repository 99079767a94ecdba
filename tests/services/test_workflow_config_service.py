"""
Tests for the workflow config persistence adapter.

The adapter flushes but never commits; these tests run inside one session
unless they need two competing writers.
"""

from uuid import uuid4

import pytest
from sqlalchemy import inspect

from workflow_kernel.db.engine import create_tables, drop_tables
from workflow_kernel.domain.condition_fields import ModuleName, OrganizationType
from workflow_kernel.domain.graph import (
    END_NODE_ID,
    START_NODE_ID,
    ApprovalPayload,
    Edge,
    Node,
    NodeType,
    default_graph,
)
from workflow_kernel.domain.graph_codec import graph_to_json
from workflow_kernel.domain.publication import PublicationState
from workflow_kernel.exceptions import (
    GraphValidationError,
    InvalidWorkflowConfigError,
    MalformedGraphError,
    OptimisticLockError,
    WorkflowConfigNotFoundError,
)
from workflow_kernel.models.workflow_config import WorkflowConfigModel
from workflow_kernel.services.workflow_config_service import WorkflowConfigService


@pytest.fixture
def config(config_service, test_actor_id):
    return config_service.create("Purchase approval", "purchase", "company", test_actor_id)


class TestCreate:
    def test_new_config_is_draft_with_default_graph(self, config, config_service):
        assert config.state == PublicationState.DRAFT
        assert config.module_name == ModuleName.PURCHASE
        assert config.organization_type == OrganizationType.COMPANY
        assert config.revision == 1
        assert config.workflow_nodes == graph_to_json(default_graph())
        assert config_service.load_graph(config) == default_graph()

    def test_records_actor(self, config, session, test_actor_id):
        model = session.get(WorkflowConfigModel, config.id)
        assert model.created_by_id == test_actor_id
        assert config.updated_by_id == test_actor_id

    def test_blank_name_rejected(self, config_service, test_actor_id):
        with pytest.raises(InvalidWorkflowConfigError) as exc_info:
            config_service.create("   ", "purchase", "company", test_actor_id)
        assert exc_info.value.field_name == "name"

    @pytest.mark.parametrize(
        "module_name, organization_type, field_name",
        [("inventory", "company", "module_name"), ("purchase", "hospital", "organization_type")],
    )
    def test_unknown_scope_rejected(
        self, config_service, test_actor_id, module_name, organization_type, field_name,
    ):
        with pytest.raises(InvalidWorkflowConfigError) as exc_info:
            config_service.create("X", module_name, organization_type, test_actor_id)
        assert exc_info.value.field_name == field_name


class TestRead:
    def test_get_unknown(self, config_service):
        with pytest.raises(WorkflowConfigNotFoundError):
            config_service.get(uuid4())

    def test_list_filters(self, config_service, test_actor_id):
        purchase = config_service.create("P", "purchase", "company", test_actor_id)
        school = config_service.create("S", "purchase", "school", test_actor_id)
        refund = config_service.create("R", "reimbursement", "company", test_actor_id)

        assert {c.id for c in config_service.list_configs()} == {
            purchase.id, school.id, refund.id,
        }
        assert {c.id for c in config_service.list_configs(module_name="purchase")} == {
            purchase.id, school.id,
        }
        assert [
            c.id for c in config_service.list_configs(
                module_name=ModuleName.PURCHASE, organization_type="school",
            )
        ] == [school.id]

    def test_load_graph_malformed(self, config, config_service, session):
        model = session.get(WorkflowConfigModel, config.id)
        model.workflow_nodes = {"nodes": "broken"}
        session.flush()
        with pytest.raises(MalformedGraphError) as exc_info:
            config_service.load_graph(config_service.get(config.id))
        assert exc_info.value.config_id == str(config.id)

    def test_load_graph_absent(self, config, config_service, session):
        model = session.get(WorkflowConfigModel, config.id)
        model.workflow_nodes = None
        session.flush()
        with pytest.raises(MalformedGraphError):
            config_service.load_graph(config_service.get(config.id))


class TestUpdateDetails:
    def test_rename(self, config, config_service, test_actor_id):
        updated = config_service.update_details(
            config.id, test_actor_id, name="Big purchases", description="Over 10k",
        )
        assert updated.name == "Big purchases"
        assert updated.description == "Over 10k"
        assert updated.revision == 2
        assert updated.workflow_nodes == config.workflow_nodes

    def test_blank_rename_rejected(self, config, config_service, test_actor_id):
        with pytest.raises(InvalidWorkflowConfigError):
            config_service.update_details(config.id, test_actor_id, name="")


class TestReplaceGraph:
    def _graph_with_approver(self, users):
        graph = default_graph()
        graph.remove_edge("e_start-end")
        graph.add_node(Node("a", NodeType.APPROVAL, "Manager",
                            payload=ApprovalPayload(users=tuple(users))))
        graph.add_edge(Edge("e_start-a", START_NODE_ID, "a"))
        graph.add_edge(Edge("e_a-end", "a", END_NODE_ID))
        return graph

    def test_draft_save_overwrites_document(self, config, config_service, test_actor_id):
        graph = self._graph_with_approver([])
        saved = config_service.replace_graph(
            config.id, graph, is_published=False, expected_revision=1, actor_id=test_actor_id,
        )
        assert saved.revision == 2
        assert not saved.is_published
        assert config_service.load_graph(saved) == graph

    def test_publish_valid(self, config, config_service, test_actor_id):
        saved = config_service.replace_graph(
            config.id, self._graph_with_approver(["u1"]),
            is_published=True, expected_revision=1, actor_id=test_actor_id,
        )
        assert saved.state == PublicationState.PUBLISHED

    def test_publish_invalid_rejected_server_side(
        self, config, config_service, test_actor_id, captured_logs,
    ):
        with pytest.raises(GraphValidationError) as exc_info:
            config_service.replace_graph(
                config.id, self._graph_with_approver([]),
                is_published=True, expected_revision=1, actor_id=test_actor_id,
            )
        assert exc_info.value.kind == "missing_approver"
        assert exc_info.value.node_ids == ("a",)
        unchanged = config_service.get(config.id)
        assert unchanged.revision == 1
        assert not unchanged.is_published
        assert any(
            r["message"] == "publish_rejected" and r["where"] == "server"
            for r in captured_logs()
        )

    def test_stale_revision_rejected(self, config, config_service, test_actor_id):
        with pytest.raises(OptimisticLockError) as exc_info:
            config_service.replace_graph(
                config.id, default_graph(),
                is_published=False, expected_revision=7, actor_id=test_actor_id,
            )
        assert exc_info.value.expected_revision == 7
        assert exc_info.value.actual_revision == 1

    def test_concurrent_flush_is_a_lock_conflict(
        self, session_factory, test_actor_id,
    ):
        with session_factory() as setup:
            config = WorkflowConfigService(setup).create(
                "Shared", "purchase", "company", test_actor_id,
            )
            setup.commit()

        first = session_factory()
        second = session_factory()
        try:
            stale = WorkflowConfigService(first)
            stale.get(config.id)

            winner = WorkflowConfigService(second)
            winner.replace_graph(
                config.id, default_graph("Winner"),
                is_published=False, expected_revision=1, actor_id=test_actor_id,
            )
            second.commit()

            with pytest.raises(OptimisticLockError):
                stale.replace_graph(
                    config.id, default_graph("Begin"),
                    is_published=False, expected_revision=1, actor_id=test_actor_id,
                )
        finally:
            first.rollback()
            first.close()
            second.close()


class TestDelete:
    def test_delete(self, config, config_service):
        config_service.delete(config.id)
        with pytest.raises(WorkflowConfigNotFoundError):
            config_service.get(config.id)

    def test_delete_unknown(self, config_service):
        with pytest.raises(WorkflowConfigNotFoundError):
            config_service.delete(uuid4())


class TestTableLifecycle:
    """create_tables / drop_tables act on the registered workflow tables."""

    def test_drop_then_create(self, db_engine):
        assert inspect(db_engine).has_table("workflow_configs")
        drop_tables()
        assert not inspect(db_engine).has_table("workflow_configs")
        create_tables()
        assert inspect(db_engine).has_table("workflow_configs")
