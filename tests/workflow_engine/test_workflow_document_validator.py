"""Tests for workflow document validation."""

import pytest

from taskflow_engine.workflow.models import WorkflowValidationError
from taskflow_engine.workflow.validator import (
    ValidationMode,
    WorkflowValidator,
    apply_validation,
    get_schema_validator,
    reset_schema_validator,
)


def document(*tasks, **fields):
    return {"id": "doc", **fields, "tasks": list(tasks)}


class TestWorkflowValidator:
    """Test document checks."""

    def setup_method(self):
        """Set up a fresh validator."""
        self.validator = WorkflowValidator()

    def test_valid_document(self):
        """Test that a well-formed document passes cleanly."""
        is_valid = self.validator.validate(
            document(
                {"id": "s", "type": "setVar", "key": "gold", "value": 5},
                {"id": "b", "type": "branch", "ifEqualsKey": "gold", "ifEqualsValue": "5",
                 "thenGo": "e", "elseGo": "e"},
                {"id": "e", "type": "end"},
            )
        )

        assert is_valid
        assert self.validator.errors == []
        assert self.validator.warnings == []

    def test_not_a_mapping(self):
        assert not self.validator.validate(["tasks"])
        assert self.validator.errors == ["Workflow must be a dictionary/object"]

    def test_missing_tasks(self):
        assert not self.validator.validate({"id": "doc"})
        assert any("'tasks' is a required property" in error for error in self.validator.errors)

    def test_empty_tasks(self):
        assert not self.validator.validate(document())
        assert any("tasks" in error for error in self.validator.errors)

    def test_unknown_document_field(self):
        assert not self.validator.validate({"tasks": [{"id": "e", "type": "end"}], "steps": []})
        assert any("steps" in error for error in self.validator.errors)

    def test_unknown_task_type(self):
        """Test that unrecognized types are rejected by the schema."""
        assert not self.validator.validate(document({"id": "x", "type": "teleport"}))
        assert any("teleport" in error for error in self.validator.errors)
        assert "Task 'x': Unknown task type: teleport. Valid types: " \
               "setVar, log, choice, branch, goto, effect, end" in self.validator.errors

    def test_missing_required_attribute(self):
        """Test per-instruction required attributes."""
        assert not self.validator.validate(document({"id": "g", "type": "goto"}))
        assert "Task 'g': Task type 'goto' missing required field: go" in self.validator.errors

    def test_blank_required_attribute(self):
        assert not self.validator.validate(document({"id": "s", "type": "setVar", "key": "  "}))
        assert any("missing required field: key" in error for error in self.validator.errors)

    def test_duplicate_ids(self):
        assert not self.validator.validate(document({"id": "a", "type": "end"}, {"id": "a", "type": "end"}))
        assert "Duplicate task id: a" in self.validator.errors

    def test_unknown_start(self):
        assert not self.validator.validate(document({"id": "a", "type": "end"}, start="b"))
        assert "Start task not found: b" in self.validator.errors

    def test_missing_jump_target_is_warning(self):
        """Test that dangling jumps only warn, since they fail only if reached."""
        assert self.validator.validate(document({"id": "g", "type": "goto", "go": "later"}))
        assert self.validator.warnings == ["Task 'g': go target 'later' does not exist"]

    def test_unused_field_is_warning(self):
        assert self.validator.validate(document({"id": "l", "type": "log", "message": "m", "key": "k"}))
        assert self.validator.warnings == ["Task 'l': field 'key' is not used by 'log' tasks"]

    def test_nested_values_rejected(self):
        assert not self.validator.validate(document({"id": "l", "type": "log", "message": ["a", "b"]}))

    def test_validation_error_text(self):
        self.validator.validate(document({"id": "g", "type": "goto"}))
        message = self.validator.get_validation_error()
        assert message.startswith("Workflow validation failed:")
        assert "missing required field: go" in message

    def test_validation_error_text_empty_when_valid(self):
        self.validator.validate(document({"id": "e", "type": "end"}))
        assert self.validator.get_validation_error() == ""


class TestApplyValidation:
    """Test the three validation modes."""

    INVALID = {"tasks": [{"id": "g", "type": "goto"}]}

    def test_none_skips(self):
        assert apply_validation(self.INVALID, ValidationMode.NONE) is None

    def test_warn_only_logs(self, caplog):
        with caplog.at_level("WARNING"):
            validator = apply_validation(self.INVALID, ValidationMode.WARN_ONLY, "inline")

        assert validator.errors
        assert "Workflow validation failed: inline" in caplog.text

    def test_fail_fast_raises(self):
        with pytest.raises(WorkflowValidationError, match="inline: Workflow validation failed"):
            apply_validation(self.INVALID, ValidationMode.FAIL_FAST, "inline")

    @pytest.mark.parametrize(
        "value, expected",
        [("none", ValidationMode.NONE), ("WARN_ONLY", ValidationMode.WARN_ONLY),
         ("fail-fast", ValidationMode.FAIL_FAST), (ValidationMode.NONE, ValidationMode.NONE)],
    )
    def test_mode_from_value(self, value, expected):
        assert ValidationMode.from_value(value) is expected

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown validation mode"):
            ValidationMode.from_value("strict")


class TestSchemaValidatorSingleton:
    """Test the shared compiled schema."""

    def teardown_method(self):
        reset_schema_validator()

    def test_validator_is_shared(self):
        assert get_schema_validator() is get_schema_validator()

    def test_reset_rebuilds(self):
        first = get_schema_validator()
        reset_schema_validator()
        assert get_schema_validator() is not first
