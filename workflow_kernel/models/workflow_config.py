"""
Module: workflow_kernel.models.workflow_config
Responsibility: ORM persistence for workflow configs (one approval graph per row).

Architecture position: Kernel > Models.  May import from db/base.py and the
    pure domain DTOs only.

Invariants enforced:
    - module_name and organization_type are limited by check constraints.
    - workflow_nodes is replaced as a whole document, never patched.
    - revision is SQLAlchemy's version_id_col: every UPDATE is conditioned on
      the revision that was loaded, so two sessions cannot silently overwrite
      each other's graph.

Failure modes:
    - IntegrityError on an unknown module_name / organization_type.
    - StaleDataError when a concurrent UPDATE bumped the revision first.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from workflow_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from workflow_kernel.domain.workflow_config import WorkflowConfig


class WorkflowConfigModel(TrackedBase):
    """Persistent workflow config.

    Contract:
        ``is_published`` is written only together with the graph, by
        ``WorkflowConfigService.replace_graph``.

    Guarantees:
        - ``revision`` starts at 1 and increases by one on every UPDATE.
    """

    __tablename__ = "workflow_configs"

    __table_args__ = (
        CheckConstraint(
            "module_name IN ('purchase', 'reimbursement')",
            name="ck_workflow_configs_module_name",
        ),
        CheckConstraint(
            "organization_type IN ('company', 'school')",
            name="ck_workflow_configs_organization_type",
        ),
        Index(
            "ix_workflow_configs_module_org",
            "module_name", "organization_type", "is_published",
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    module_name: Mapped[str] = mapped_column(String(50), nullable=False)
    organization_type: Mapped[str] = mapped_column(String(50), nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    workflow_nodes: Mapped[Any] = mapped_column(JSON, nullable=True)
    revision: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": revision}

    def __repr__(self) -> str:
        state = "published" if self.is_published else "draft"
        return (
            f"<WorkflowConfig {self.id} {self.module_name}/{self.organization_type} "
            f"{state} rev={self.revision}>"
        )

    def to_dto(self) -> WorkflowConfig:
        """Convert ORM model to frozen domain DTO."""
        from workflow_kernel.domain.condition_fields import ModuleName, OrganizationType
        from workflow_kernel.domain.workflow_config import WorkflowConfig

        return WorkflowConfig(
            id=self.id,
            name=self.name,
            description=self.description or "",
            module_name=ModuleName(self.module_name),
            organization_type=OrganizationType(self.organization_type),
            is_published=bool(self.is_published),
            workflow_nodes=self.workflow_nodes,
            revision=self.revision,
            updated_at=self.updated_at,
            updated_by_id=self.updated_by_id,
        )
