"""Services for the workflow kernel (write side)."""

from workflow_kernel.services.workflow_config_service import WorkflowConfigService

__all__ = [
    "WorkflowConfigService",
]
