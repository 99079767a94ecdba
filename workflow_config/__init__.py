"""
workflow_config -- single public entrypoint for designer settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  No other component reads settings files
    directly.  Returns a frozen ``WorkflowSettings``.

Architecture position:
    Configuration.  This package sits above ``workflow_kernel`` and below
    ``workflow_services`` / ``scripts``.  The kernel MUST NEVER import from
    ``workflow_config``.

Failure modes:
    - ``FileNotFoundError`` -- the settings file does not exist.
    - ``yaml.YAMLError`` -- the settings file is not valid YAML.
    - ``SettingsValidationError`` -- the parsed settings failed validation.

Every successful ``get_active_settings()`` call emits a
``workflow_settings_loaded`` log entry with the source path and checksum.
"""

from __future__ import annotations

from pathlib import Path

from workflow_config.loader import load_settings
from workflow_config.schema import DatabaseSettings, EditorSettings, WorkflowSettings
from workflow_config.validator import (
    SettingsValidationError,
    SettingsValidationResult,
    validate_settings,
)
from workflow_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults" / "settings.yaml"


def get_active_settings(path: Path | str | None = None) -> WorkflowSettings:
    """The ONLY public settings entrypoint.

    Guarantees:
        - The returned settings have passed ``validate_settings``.
        - Validation warnings are logged, not raised.

    Args:
        path: Override path to a settings YAML file.  Defaults to the
            packaged ``defaults/settings.yaml``.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        SettingsValidationError: If validation reports any error.
    """
    source = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    settings = load_settings(source)

    result = validate_settings(settings)
    for warning in result.warnings:
        _logger.warning("workflow_settings_warning", extra={"warning": warning})
    if not result.is_valid:
        raise SettingsValidationError(result.errors)

    _logger.info(
        "workflow_settings_loaded",
        extra={
            "source": str(source),
            "checksum": settings.checksum,
            "log_level": settings.log_level,
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "DatabaseSettings",
    "EditorSettings",
    "SettingsValidationError",
    "SettingsValidationResult",
    "WorkflowSettings",
    "get_active_settings",
    "validate_settings",
]
