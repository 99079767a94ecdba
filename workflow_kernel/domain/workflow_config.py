"""
Workflow config DTO (``workflow_kernel.domain.workflow_config``).

Responsibility
--------------
Frozen snapshot of a persisted workflow config row, handed out by the
persistence adapter.  The graph document is kept raw (``workflow_nodes``)
so that a malformed document is reported when it is opened for editing,
not when configs are listed.

Architecture position
---------------------
**Kernel domain layer** -- pure value object.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from workflow_kernel.domain.condition_fields import ModuleName, OrganizationType
from workflow_kernel.domain.publication import PublicationState


@dataclass(frozen=True)
class WorkflowConfig:
    """Immutable snapshot of one workflow config.

    ``revision`` is the optimistic-concurrency token; callers pass it back
    when replacing the graph.
    """

    id: UUID
    name: str
    module_name: ModuleName
    organization_type: OrganizationType
    is_published: bool
    workflow_nodes: Any
    revision: int
    description: str = ""
    updated_at: datetime | None = None
    updated_by_id: UUID | None = None

    @property
    def state(self) -> PublicationState:
        return PublicationState.PUBLISHED if self.is_published else PublicationState.DRAFT
