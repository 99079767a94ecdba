"""
Publication state machine (``workflow_kernel.domain.publication``).

Responsibility
--------------
Pure draft/published lifecycle of a workflow config.  Two states, two
actions, no terminal state:

* ``SAVE_DRAFT`` always succeeds from any state and lands in DRAFT.  It
  never runs the validator, so incomplete work can always be checkpointed.
* ``PUBLISH`` lands in PUBLISHED only when ``validate(graph)`` passes.
  Republishing an already published config is allowed so that edits can
  go live.

Architecture position
---------------------
**Kernel domain layer** -- pure transition table and planner.  ZERO I/O.
``workflow_services.designer`` applies a plan by persisting it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from workflow_kernel.domain.graph import WorkflowGraph
from workflow_kernel.domain.graph_validator import ValidationFailure, validate


class PublicationState(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class PublicationAction(str, Enum):
    SAVE_DRAFT = "save_draft"
    PUBLISH = "publish"


PUBLICATION_TRANSITIONS: dict[
    PublicationState, dict[PublicationAction, PublicationState]
] = {
    PublicationState.DRAFT: {
        PublicationAction.SAVE_DRAFT: PublicationState.DRAFT,
        PublicationAction.PUBLISH: PublicationState.PUBLISHED,
    },
    PublicationState.PUBLISHED: {
        PublicationAction.SAVE_DRAFT: PublicationState.DRAFT,
        PublicationAction.PUBLISH: PublicationState.PUBLISHED,
    },
}

VALIDATED_ACTIONS: frozenset[PublicationAction] = frozenset({
    PublicationAction.PUBLISH,
})


@dataclass(frozen=True)
class PublicationPlan:
    """Outcome of planning a lifecycle action.

    Contract: exactly one of ``to_state`` / ``failure`` is set.
    """

    action: PublicationAction
    from_state: PublicationState
    to_state: PublicationState | None = None
    failure: ValidationFailure | None = None

    @property
    def allowed(self) -> bool:
        return self.failure is None

    @property
    def is_published(self) -> bool:
        return self.to_state == PublicationState.PUBLISHED


def plan_transition(
    current: PublicationState,
    action: PublicationAction,
    graph: WorkflowGraph,
) -> PublicationPlan:
    """Decide where ``action`` takes a config currently in ``current``."""
    if action in VALIDATED_ACTIONS:
        failure = validate(graph)
        if failure is not None:
            return PublicationPlan(action=action, from_state=current, failure=failure)
    return PublicationPlan(
        action=action,
        from_state=current,
        to_state=PUBLICATION_TRANSITIONS[current][action],
    )
