"""
Tests for designer settings: YAML loading, validation and the single
``get_active_settings`` entry point.
"""

import pytest
import yaml

from workflow_config import (
    DEFAULT_SETTINGS_PATH,
    SettingsValidationError,
    get_active_settings,
    validate_settings,
)
from workflow_config.loader import load_yaml_file, parse_settings
from workflow_config.schema import DatabaseSettings, EditorSettings, WorkflowSettings
from workflow_kernel.domain.graph import EdgeCondition, NodeType


def _write(tmp_path, data):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestPackagedDefaults:
    def test_defaults_load_and_validate(self):
        settings = get_active_settings()
        assert settings.editor.start_name == "Start"
        assert settings.editor.end_name == "End"
        assert settings.editor.node_name(NodeType.APPROVAL) == "New approval node"
        assert settings.editor.decision_labels == {
            EdgeCondition.APPROVED: "Approve",
            EdgeCondition.REJECTED: "Reject",
        }
        assert settings.database.pool_size == 10
        assert settings.log_level == "INFO"

    def test_defaults_match_schema_defaults(self):
        settings = get_active_settings()
        assert settings.editor == EditorSettings()

    def test_trace_logged(self, captured_logs):
        settings = get_active_settings()
        (record,) = [r for r in captured_logs() if r["message"] == "workflow_settings_loaded"]
        assert record["checksum"] == settings.checksum
        assert record["source"] == str(DEFAULT_SETTINGS_PATH)


class TestParsing:
    def test_minimal_document(self):
        settings = parse_settings({"database": {"url": "sqlite://"}})
        assert settings.database == DatabaseSettings(url="sqlite://")
        assert settings.editor == EditorSettings()

    def test_overrides(self):
        settings = parse_settings({
            "database": {"url": "sqlite://", "echo": True},
            "editor": {
                "approve_label": "Agree",
                "node_names": {"CC": "Copy"},
                "new_node": {"x": 0, "spacing": 40},
            },
            "logging": {"level": "debug"},
        })
        assert settings.database.echo is True
        assert settings.editor.approve_label == "Agree"
        assert settings.editor.node_name(NodeType.CC) == "Copy"
        assert settings.editor.node_name(NodeType.NOTIFY) == "New notify node"
        assert settings.editor.new_node_x == 0
        assert settings.editor.new_node_y == 120
        assert settings.editor.new_node_spacing == 40
        assert settings.log_level == "DEBUG"

    def test_missing_database_section(self):
        with pytest.raises(KeyError):
            parse_settings({})

    def test_unknown_node_type(self):
        with pytest.raises(ValueError):
            parse_settings({"database": {"url": "x"}, "editor": {"node_names": {"LOOP": "x"}}})

    def test_checksum_is_deterministic(self):
        a = parse_settings({"database": {"url": "x", "echo": False}})
        b = parse_settings({"database": {"echo": False, "url": "x"}})
        c = parse_settings({"database": {"url": "y"}})
        assert a.checksum == b.checksum
        assert a.checksum != c.checksum

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}


class TestValidation:
    def _settings(self, **editor):
        return WorkflowSettings(
            database=DatabaseSettings(url="sqlite://"),
            editor=EditorSettings(**editor),
        )

    def test_defaults_valid(self):
        result = validate_settings(self._settings())
        assert result.is_valid
        assert result.warnings == []

    def test_blank_labels(self):
        result = validate_settings(self._settings(approve_label=" ", end_name=""))
        assert not result.is_valid
        assert "editor.approve_label must not be empty" in result.errors
        assert "editor.end_name must not be empty" in result.errors

    def test_missing_node_name(self):
        names = {NodeType.APPROVAL: "A", NodeType.CC: "C", NodeType.NOTIFY: "N"}
        result = validate_settings(self._settings(node_names=names))
        assert result.errors == ["editor.node_names has no default name for CONDITION"]

    def test_non_positive_spacing(self):
        result = validate_settings(self._settings(new_node_spacing=0))
        assert "editor.new_node.spacing must be positive" in result.errors

    def test_database_checks(self):
        settings = WorkflowSettings(
            database=DatabaseSettings(url="", pool_size=0, echo=True),
        )
        result = validate_settings(settings)
        assert "database.url must not be empty" in result.errors
        assert "database.pool_size must be at least 1" in result.errors
        assert result.warnings

    def test_bad_log_level(self):
        settings = WorkflowSettings(database=DatabaseSettings(url="x"), log_level="LOUD")
        assert not validate_settings(settings).is_valid


class TestGetActiveSettings:
    def test_custom_file(self, tmp_path):
        path = _write(tmp_path, {
            "database": {"url": "sqlite:///workflow.db"},
            "editor": {"start_name": "Begin"},
        })
        settings = get_active_settings(path)
        assert settings.database.url == "sqlite:///workflow.db"
        assert settings.editor.start_name == "Begin"

    def test_invalid_file_raises(self, tmp_path):
        path = _write(tmp_path, {"database": {"url": ""}, "logging": {"level": "LOUD"}})
        with pytest.raises(SettingsValidationError) as exc_info:
            get_active_settings(path)
        assert len(exc_info.value.errors) == 2
        assert isinstance(exc_info.value, ValueError)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_settings(tmp_path / "nope.yaml")

    def test_warnings_logged(self, tmp_path, captured_logs):
        path = _write(tmp_path, {"database": {"url": "sqlite://", "echo": True}})
        get_active_settings(path)
        assert any(r["message"] == "workflow_settings_warning" for r in captured_logs())
