"""
Workflow services -- stateful orchestration over the kernel.

``CanvasEditorSession`` holds an author's in-memory graph and command log;
``WorkflowDesigner`` binds a session to a persisted config and drives the
draft/publish lifecycle.
"""

from workflow_services.designer import WorkflowDesigner
from workflow_services.editor_session import (
    CanvasEditorSession,
    Change,
    EditCommand,
    Selection,
)

__all__ = [
    "CanvasEditorSession",
    "Change",
    "EditCommand",
    "Selection",
    "WorkflowDesigner",
]
