#!/usr/bin/env python3
"""
Validate a workflow graph stored as JSON.

Accepts either a bare graph document ({"nodes": [...], "edges": [...]}) or a
whole workflow config export carrying it under "workflow_nodes".  Runs the
same checks a publish would and reports the first failure.

Usage:
    python scripts/validate_workflow.py path/to/graph.json
    python scripts/validate_workflow.py path/to/config.json --module purchase

Exit codes:
    0  graph would publish
    1  graph fails publish validation (or a condition field is unknown)
    2  file missing or unreadable as a workflow graph
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from workflow_kernel.domain.condition_fields import ModuleName, is_condition_field
from workflow_kernel.domain.graph import NodeType, WorkflowGraph
from workflow_kernel.domain.graph_codec import graph_from_json
from workflow_kernel.domain.graph_validator import validate
from workflow_kernel.exceptions import MalformedGraphError


def unknown_condition_fields(graph: WorkflowGraph, module_name: ModuleName) -> list[str]:
    """Labels of CONDITION nodes whose field is outside the module catalog."""
    return [
        node.label
        for node in graph.nodes_of_type(NodeType.CONDITION)
        if node.payload.field is not None
        and not is_condition_field(module_name, node.payload.field)
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Check whether a workflow graph JSON file would pass publish validation."
    )
    parser.add_argument("path", type=Path, help="Graph or workflow config JSON file")
    parser.add_argument(
        "--module",
        choices=[m.value for m in ModuleName],
        default=None,
        help="Also check CONDITION fields against this module's field catalog",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Print nothing; report through the exit code only",
    )
    args = parser.parse_args(argv)

    if not args.path.is_file():
        print(f"Error: file not found: {args.path}", file=sys.stderr)
        return 2

    try:
        document = json.loads(args.path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON in {args.path}: {e}", file=sys.stderr)
        return 2

    if isinstance(document, dict) and "workflow_nodes" in document:
        document = document["workflow_nodes"]

    try:
        graph = graph_from_json(document)
    except MalformedGraphError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    failure = validate(graph)
    if failure is not None:
        if not args.quiet:
            print(f"INVALID ({failure.kind.value}): {failure.reason}")
        return 1

    if args.module is not None:
        unknown = unknown_condition_fields(graph, ModuleName(args.module))
        if unknown:
            if not args.quiet:
                print(
                    f"INVALID (unknown_condition_field): "
                    f"{', '.join(unknown)} not in the {args.module} field catalog"
                )
            return 1

    if not args.quiet:
        print(
            f"OK: {len(graph)} nodes, {len(graph.edges())} edges; "
            "the graph can be published."
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
