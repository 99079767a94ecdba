"""
Settings Validator (``workflow_config.validator``).

Checks a parsed ``WorkflowSettings`` before it is handed to the editor and
the database layer.

Errors block use of the settings; warnings are reported but allowed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from workflow_config.schema import WorkflowSettings

_LOG_LEVELS = frozenset(logging.getLevelNamesMapping())


@dataclass
class SettingsValidationResult:
    """
    Result of settings validation.

    ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_settings(settings: WorkflowSettings) -> SettingsValidationResult:
    result = SettingsValidationResult()

    if not settings.database.url.strip():
        result.add_error("database.url must not be empty")
    if settings.database.pool_size < 1:
        result.add_error("database.pool_size must be at least 1")
    if settings.database.echo:
        result.add_warning("database.echo is enabled; SQL statements will be logged")

    editor = settings.editor
    for node_type in editor.creatable_types_without_name:
        result.add_error(f"editor.node_names has no default name for {node_type.value}")
    for key, label in (
        ("start_name", editor.start_name),
        ("end_name", editor.end_name),
        ("approve_label", editor.approve_label),
        ("reject_label", editor.reject_label),
    ):
        if not label.strip():
            result.add_error(f"editor.{key} must not be empty")
    if editor.new_node_spacing <= 0:
        result.add_error("editor.new_node.spacing must be positive")

    if settings.log_level not in _LOG_LEVELS:
        result.add_error(f"logging.level {settings.log_level!r} is not a logging level")

    return result


class SettingsValidationError(ValueError):
    """Raised by ``get_active_settings`` when validation reports errors."""

    code: str = "SETTINGS_INVALID"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            "Settings validation failed:\n"
            + "\n".join(f"  - {e}" for e in self.errors)
        )
