"""
Workflow Kernel - approval workflow graph engine.

A configurable approval-workflow graph with:
- Typed START/END/APPROVAL/CC/NOTIFY/CONDITION nodes and conditioned edges
- Connection-validity rules for the visual editor
- Fail-fast publish validation (reachability, orphans, approvers)
- Draft/published lifecycle with optimistic concurrency on persistence
"""

__version__ = "0.1.0"
