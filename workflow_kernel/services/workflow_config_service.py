"""
workflow_kernel.services.workflow_config_service -- Workflow config persistence.

Responsibility:
    CRUD boundary for workflow configs: list, get, create (draft with the
    default two-node graph), rename, full graph replacement together with
    the published flag, and delete.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - The graph document is always replaced as a whole.
    - Writing ``is_published=True`` re-runs the pure validator here, so a
      stale or bypassed client cannot publish an invalid graph.
    - ``expected_revision`` must match the stored revision; a concurrent
      flush race is also reported as ``OptimisticLockError``.
    - Flush only.  The caller owns commit/rollback.

Failure modes:
    - WorkflowConfigNotFoundError if config_id not found.
    - InvalidWorkflowConfigError on blank name or unknown module/org type.
    - GraphValidationError when publishing an invalid graph.
    - OptimisticLockError on a revision mismatch.
    - MalformedGraphError from load_graph() on an unreadable document.
"""

from __future__ import annotations

from collections.abc import Mapping
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from workflow_kernel.domain.condition_fields import ModuleName, OrganizationType
from workflow_kernel.domain.graph import (
    DEFAULT_DECISION_LABELS,
    EdgeCondition,
    WorkflowGraph,
    default_graph,
)
from workflow_kernel.domain.graph_codec import graph_from_json, graph_to_json
from workflow_kernel.domain.graph_validator import validate
from workflow_kernel.domain.workflow_config import WorkflowConfig
from workflow_kernel.exceptions import (
    GraphValidationError,
    InvalidWorkflowConfigError,
    OptimisticLockError,
    WorkflowConfigNotFoundError,
)
from workflow_kernel.logging_config import get_logger
from workflow_kernel.models.workflow_config import WorkflowConfigModel

logger = get_logger("services.workflow_config")

_ENTITY_TYPE = "WorkflowConfig"


def _coerce_module(value: ModuleName | str) -> ModuleName:
    try:
        return ModuleName(value)
    except ValueError:
        raise InvalidWorkflowConfigError("module_name", f"unknown module {value!r}") from None


def _coerce_org(value: OrganizationType | str) -> OrganizationType:
    try:
        return OrganizationType(value)
    except ValueError:
        raise InvalidWorkflowConfigError(
            "organization_type", f"unknown organization type {value!r}",
        ) from None


def _clean_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise InvalidWorkflowConfigError("name", "name is required")
    return name.strip()


class WorkflowConfigService:
    """Persistence adapter for workflow configs."""

    def __init__(
        self,
        session: Session,
        start_name: str = "Start",
        end_name: str = "End",
        decision_labels: Mapping[EdgeCondition, str] | None = None,
    ) -> None:
        self._session = session
        self._start_name = start_name
        self._end_name = end_name
        self._decision_labels = dict(decision_labels or DEFAULT_DECISION_LABELS)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_configs(
        self,
        module_name: ModuleName | str | None = None,
        organization_type: OrganizationType | str | None = None,
    ) -> list[WorkflowConfig]:
        """All configs, most recently updated first."""
        stmt = select(WorkflowConfigModel)
        if module_name is not None:
            stmt = stmt.where(
                WorkflowConfigModel.module_name == _coerce_module(module_name).value,
            )
        if organization_type is not None:
            stmt = stmt.where(
                WorkflowConfigModel.organization_type == _coerce_org(organization_type).value,
            )
        stmt = stmt.order_by(
            WorkflowConfigModel.updated_at.desc(),
            WorkflowConfigModel.name,
        )
        return [m.to_dto() for m in self._session.execute(stmt).scalars()]

    def get(self, config_id: UUID) -> WorkflowConfig:
        return self._load(config_id).to_dto()

    def load_graph(self, config: WorkflowConfig) -> WorkflowGraph:
        """Parse a config's graph document.

        Raises:
            MalformedGraphError: when the stored document is absent or
                unreadable.  No default graph is substituted.
        """
        return graph_from_json(
            config.workflow_nodes,
            decision_labels=self._decision_labels,
            config_id=str(config.id),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        module_name: ModuleName | str,
        organization_type: OrganizationType | str,
        actor_id: UUID,
        description: str = "",
    ) -> WorkflowConfig:
        """Create a draft config holding the default two-node graph."""
        model = WorkflowConfigModel(
            name=_clean_name(name),
            description=description or "",
            module_name=_coerce_module(module_name).value,
            organization_type=_coerce_org(organization_type).value,
            is_published=False,
            workflow_nodes=graph_to_json(default_graph(self._start_name, self._end_name)),
            created_by_id=actor_id,
            updated_by_id=actor_id,
        )
        self._session.add(model)
        self._session.flush()

        logger.info(
            "workflow_config_created",
            extra={
                "config_id": str(model.id),
                "module_name": model.module_name,
                "organization_type": model.organization_type,
                "actor_id": str(actor_id),
            },
        )
        return model.to_dto()

    def update_details(
        self,
        config_id: UUID,
        actor_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> WorkflowConfig:
        """Rename or re-describe a config. The graph is untouched."""
        model = self._load(config_id)
        if name is not None:
            model.name = _clean_name(name)
        if description is not None:
            model.description = description
        model.updated_by_id = actor_id
        self._flush(model)
        return model.to_dto()

    def replace_graph(
        self,
        config_id: UUID,
        graph: WorkflowGraph,
        *,
        is_published: bool,
        expected_revision: int,
        actor_id: UUID,
    ) -> WorkflowConfig:
        """Overwrite the whole graph document and the published flag."""
        model = self._load(config_id)
        if model.revision != expected_revision:
            logger.warning(
                "workflow_config_revision_conflict",
                extra={
                    "config_id": str(config_id),
                    "expected_revision": expected_revision,
                    "actual_revision": model.revision,
                },
            )
            raise OptimisticLockError(
                _ENTITY_TYPE, str(config_id), expected_revision, model.revision,
            )

        if is_published:
            failure = validate(graph)
            if failure is not None:
                logger.warning(
                    "publish_rejected",
                    extra={
                        "config_id": str(config_id),
                        "kind": failure.kind.value,
                        "node_ids": list(failure.node_ids),
                        "where": "server",
                    },
                )
                raise GraphValidationError(
                    failure.kind.value, failure.reason, failure.node_ids,
                )

        model.workflow_nodes = graph_to_json(graph)
        model.is_published = is_published
        model.updated_by_id = actor_id
        self._flush(model)

        logger.info(
            "workflow_graph_replaced",
            extra={
                "config_id": str(config_id),
                "is_published": is_published,
                "revision": model.revision,
                "node_count": len(graph),
                "edge_count": len(graph.edges()),
            },
        )
        return model.to_dto()

    def delete(self, config_id: UUID) -> None:
        model = self._load(config_id)
        self._session.delete(model)
        self._session.flush()
        logger.info("workflow_config_deleted", extra={"config_id": str(config_id)})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, config_id: UUID) -> WorkflowConfigModel:
        model = self._session.get(WorkflowConfigModel, config_id)
        if model is None:
            raise WorkflowConfigNotFoundError(str(config_id))
        return model

    def _flush(self, model: WorkflowConfigModel) -> None:
        try:
            self._session.flush()
        except StaleDataError:
            raise OptimisticLockError(_ENTITY_TYPE, str(model.id)) from None
        # updated_at is server-generated on UPDATE
        self._session.refresh(model)
