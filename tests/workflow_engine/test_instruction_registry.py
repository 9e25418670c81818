"""Tests for the instruction type registry."""

from taskflow_engine.workflow.step_registry import INSTRUCTION_TYPES, JUMP_FIELDS, StepRegistry


class TestStepRegistry:
    """Test the StepRegistry class and its validation functionality."""

    def setup_method(self):
        """Set up test environment."""
        self.registry = StepRegistry()

    def test_all_instruction_types_exist(self):
        """Test that every instruction the engine executes is registered."""
        assert sorted(self.registry.get_all_valid_step_types()) == sorted(
            ["setVar", "log", "choice", "branch", "goto", "effect", "end"]
        )

    def test_required_fields(self):
        assert self.registry.required_fields("setVar") == ["key"]
        assert self.registry.required_fields("branch") == ["ifEqualsKey", "thenGo", "elseGo"]
        assert self.registry.required_fields("end") == []
        assert self.registry.required_fields("teleport") == []

    def test_choice_requires_all_option_fields(self):
        required = self.registry.required_fields("choice")
        for field in ["key", "prompt", "optionAText", "optionAValue", "optionBText", "optionBValue"]:
            assert field in required

    def test_validate_task(self):
        assert self.registry.validate_task({"id": "g", "type": "goto", "go": "x"}) == (True, None)
        assert self.registry.validate_task({"id": "g"}) == (False, "Task missing 'type' field")
        is_valid, message = self.registry.validate_task({"id": "g", "type": "fly"})
        assert not is_valid
        assert message == "Unknown task type: fly. Valid types: setVar, log, choice, branch, goto, effect, end"

    def test_validate_task_numeric_value_counts(self):
        """Test that non-string scalars satisfy required fields."""
        assert self.registry.validate_task({"id": "s", "type": "setVar", "key": 1}) == (True, None)

    def test_unknown_fields(self):
        task = {"id": "e", "type": "effect", "effect": "addGold", "amount": 1, "message": "x"}
        assert self.registry.unknown_fields(task) == ["message"]

    def test_jump_fields_are_required_by_jump_instructions(self):
        """Test that every attribute naming a task is required by some instruction."""
        required = {field for config in INSTRUCTION_TYPES.values() for field in config["required_fields"]}
        assert set(JUMP_FIELDS) <= required
