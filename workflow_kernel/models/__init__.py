"""ORM models for the workflow kernel."""

from workflow_kernel.models.workflow_config import WorkflowConfigModel

__all__ = [
    "WorkflowConfigModel",
]
