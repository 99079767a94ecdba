#!/usr/bin/env python3
"""
Audit every persisted workflow config.

For each config the script loads the stored graph document and reports:
  - MALFORMED: the document cannot be read as a workflow graph
  - INVALID:   the config is published but its graph fails validation
Drafts are allowed to be invalid and are only checked for readability.

The database URL comes from --database-url, or from the settings file
(workflow_config defaults unless --settings is given).

Usage:
    python scripts/check_workflow_integrity.py
    python scripts/check_workflow_integrity.py --database-url sqlite:///workflow.db
    python scripts/check_workflow_integrity.py --module purchase

Exit codes:
    0  no problems found
    1  at least one config is malformed or published-but-invalid
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from sqlalchemy.orm import Session

from workflow_config import get_active_settings
from workflow_kernel.db.engine import init_engine_from_url, session_scope
from workflow_kernel.domain.graph_validator import validate
from workflow_kernel.exceptions import MalformedGraphError
from workflow_kernel.logging_config import configure_logging
from workflow_kernel.services.workflow_config_service import WorkflowConfigService


@dataclass(frozen=True)
class IntegrityIssue:
    config_id: str
    name: str
    problem: str
    detail: str

    def __str__(self) -> str:
        return f"{self.problem:<9} {self.config_id}  {self.name}: {self.detail}"


def find_issues(
    session: Session,
    module_name: str | None = None,
) -> tuple[int, list[IntegrityIssue]]:
    """Return (configs checked, issues found)."""
    service = WorkflowConfigService(session)
    configs = service.list_configs(module_name=module_name)
    issues: list[IntegrityIssue] = []
    for config in configs:
        try:
            graph = service.load_graph(config)
        except MalformedGraphError as e:
            issues.append(IntegrityIssue(str(config.id), config.name, "MALFORMED", e.reason))
            continue
        if config.is_published:
            failure = validate(graph)
            if failure is not None:
                issues.append(
                    IntegrityIssue(str(config.id), config.name, "INVALID", failure.reason)
                )
    return len(configs), issues


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Report unreadable graphs and published configs that fail validation."
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (default: database.url from the settings file)",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings YAML file (default: packaged workflow_config defaults)",
    )
    parser.add_argument(
        "--module",
        choices=["purchase", "reimbursement"],
        default=None,
        help="Only check configs of this module",
    )
    args = parser.parse_args(argv)

    settings = get_active_settings(args.settings)
    configure_logging(level=settings.log_level)
    database_url = args.database_url or settings.database.url

    init_engine_from_url(
        database_url,
        echo=settings.database.echo,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
    )

    with session_scope() as session:
        checked, issues = find_issues(session, module_name=args.module)

    for issue in issues:
        print(issue)
    print(f"Checked {checked} workflow config(s): {len(issues)} problem(s).")
    return 1 if issues else 0


if __name__ == "__main__":
    sys.exit(main())
