"""
workflow_services.designer -- Draft/publish driver for one workflow config.

Responsibility:
    Opens a persisted workflow config for editing, hands the author a
    ``CanvasEditorSession`` over its graph, and applies the publication
    state machine when the author saves a draft or publishes.

Architecture position:
    Services -- composes the pure publication planner
    (workflow_kernel.domain.publication), the persistence adapter
    (WorkflowConfigService) and the editor session.  Owns its own
    transactions through ``session_scope``.

Invariants enforced:
    - ``save_draft()`` never validates and always persists
      ``is_published=False``.
    - ``publish()`` validates before any database call; an invalid graph
      never reaches the adapter.  The adapter validates again.
    - Only one save/publish runs at a time per designer.
    - A failed save leaves the in-memory graph, state and revision as they
      were; the editor stays usable for a retry.

Failure modes:
    - WorkflowConfigNotFoundError if the config does not exist.
    - MalformedGraphError if the stored graph document cannot be read.
      No default graph is substituted.
    - GraphValidationError when publishing an invalid graph.
    - OperationInProgressError on an overlapping save/publish.
    - OptimisticLockError when another writer saved first.
    - PersistenceFailedError wrapping any SQLAlchemyError.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from workflow_config.schema import EditorSettings
from workflow_kernel.db.engine import session_scope
from workflow_kernel.domain.publication import (
    PublicationAction,
    PublicationState,
    plan_transition,
)
from workflow_kernel.domain.workflow_config import WorkflowConfig
from workflow_kernel.exceptions import (
    GraphValidationError,
    MalformedGraphError,
    OperationInProgressError,
    PersistenceFailedError,
)
from workflow_kernel.logging_config import LogContext, get_logger
from workflow_kernel.services.workflow_config_service import WorkflowConfigService
from workflow_services.editor_session import CanvasEditorSession

logger = get_logger("services.designer")

_SUCCESS_EVENTS: dict[PublicationAction, str] = {
    PublicationAction.SAVE_DRAFT: "draft_saved",
    PublicationAction.PUBLISH: "workflow_published",
}


class WorkflowDesigner:
    """
    One author's editing session bound to a persisted workflow config.

    Contract:
        ``session_factory`` yields SQLAlchemy sessions; the designer opens
        a short transaction per load or save and never holds one while the
        author edits.
    Guarantees:
        - After a successful save, ``state`` and ``revision`` reflect the
          stored row and ``editor.is_dirty`` is False.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        config_id: UUID,
        actor_id: UUID,
        settings: EditorSettings | None = None,
        node_id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._factory = session_factory
        self._settings = settings or EditorSettings()
        self._lock = threading.Lock()
        self.config_id = config_id
        self.actor_id = actor_id

        with LogContext.bind(config_id=str(config_id), actor_id=str(actor_id)):
            with session_scope(self._factory) as db:
                service = self._service(db)
                config = service.get(config_id)
                try:
                    graph = service.load_graph(config)
                except MalformedGraphError as exc:
                    logger.error(
                        "workflow_load_failed",
                        extra={"config_id": str(config_id), "reason": exc.reason},
                    )
                    raise

        self._config = config
        self._state = config.state
        self._revision = config.revision
        self.editor = CanvasEditorSession(
            graph,
            module_name=config.module_name,
            settings=self._settings,
            node_id_factory=node_id_factory,
        )

    # -- state ----------------------------------------------------------------

    @property
    def config(self) -> WorkflowConfig:
        """The config as of the last load or successful save."""
        return self._config

    @property
    def state(self) -> PublicationState:
        return self._state

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def busy(self) -> bool:
        """True while a save or publish is in flight."""
        return self._lock.locked()

    # -- lifecycle actions ----------------------------------------------------

    def save_draft(self) -> WorkflowConfig:
        """Persist the current graph as a draft. Never validates."""
        return self._apply(PublicationAction.SAVE_DRAFT)

    def publish(self) -> WorkflowConfig:
        """Validate, then persist the current graph as published."""
        return self._apply(PublicationAction.PUBLISH)

    # -- internals ------------------------------------------------------------

    def _service(self, db: Session) -> WorkflowConfigService:
        return WorkflowConfigService(
            db,
            start_name=self._settings.start_name,
            end_name=self._settings.end_name,
            decision_labels=self._settings.decision_labels,
        )

    def _apply(self, action: PublicationAction) -> WorkflowConfig:
        if not self._lock.acquire(blocking=False):
            raise OperationInProgressError(str(self.config_id))
        try:
            with LogContext.bind(
                config_id=str(self.config_id),
                actor_id=str(self.actor_id),
                session_id=self.editor.session_id,
            ):
                return self._persist(action)
        finally:
            self._lock.release()

    def _persist(self, action: PublicationAction) -> WorkflowConfig:
        graph = self.editor.snapshot()
        plan = plan_transition(self._state, action, graph)
        if not plan.allowed:
            failure = plan.failure
            logger.warning(
                "publish_rejected",
                extra={
                    "config_id": str(self.config_id),
                    "kind": failure.kind.value,
                    "node_ids": list(failure.node_ids),
                    "where": "designer",
                },
            )
            raise GraphValidationError(failure.kind.value, failure.reason, failure.node_ids)

        try:
            with session_scope(self._factory) as db:
                config = self._service(db).replace_graph(
                    self.config_id,
                    graph,
                    is_published=plan.is_published,
                    expected_revision=self._revision,
                    actor_id=self.actor_id,
                )
        except SQLAlchemyError as exc:
            logger.error(
                "persistence_failed",
                extra={
                    "config_id": str(self.config_id),
                    "action": action.value,
                    "error": type(exc).__name__,
                },
            )
            raise PersistenceFailedError(action.value, str(self.config_id)) from exc

        self._config = config
        self._state = plan.to_state
        self._revision = config.revision
        self.editor.mark_saved()

        logger.info(
            _SUCCESS_EVENTS[action],
            extra={
                "config_id": str(self.config_id),
                "from_state": plan.from_state.value,
                "to_state": plan.to_state.value,
                "revision": config.revision,
            },
        )
        return config
