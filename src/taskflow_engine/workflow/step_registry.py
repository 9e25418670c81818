"""Declarative configuration for workflow instruction types.

This registry defines all recognized task types and which attributes
each one requires or accepts.
"""

from collections.abc import Mapping
from typing import Any, TypedDict


class InstructionConfig(TypedDict):
    """Configuration for a task instruction type."""

    description: str
    required_fields: list[str]
    optional_fields: list[str]


# Registry of all task instruction types
INSTRUCTION_TYPES: dict[str, InstructionConfig] = {
    "setVar": {
        "description": "Store an interpolated value in a variable",
        "required_fields": ["key"],
        "optional_fields": ["value"]
    },

    "log": {
        "description": "Emit an interpolated message",
        "required_fields": [],
        "optional_fields": ["message"]
    },

    # Presents two options; may suspend the run until the choice is made
    "choice": {
        "description": "Ask for one of two options and store the chosen value",
        "required_fields": ["key", "prompt", "optionAText", "optionAValue", "optionBText", "optionBValue"],
        "optional_fields": []
    },

    # Control flow
    "branch": {
        "description": "Jump to thenGo when a variable equals a value, else to elseGo",
        "required_fields": ["ifEqualsKey", "thenGo", "elseGo"],
        "optional_fields": ["ifEqualsValue"]
    },

    "goto": {
        "description": "Jump unconditionally",
        "required_fields": ["go"],
        "optional_fields": []
    },

    "effect": {
        "description": "Delegate a named side effect to the effect dispatcher",
        "required_fields": ["effect"],
        "optional_fields": ["amount", "key", "value", "params"]
    },

    "end": {
        "description": "Stop the workflow",
        "required_fields": [],
        "optional_fields": []
    },
}

# Attributes that name another task
JUMP_FIELDS = ("thenGo", "elseGo", "go")


class StepRegistry:
    """Registry for task instruction types and their configurations."""

    def __init__(self):
        self.instruction_types = INSTRUCTION_TYPES

    def get(self, task_type: str) -> InstructionConfig | None:
        """Get configuration for an instruction type."""
        return self.instruction_types.get(task_type)

    def required_fields(self, task_type: str) -> list[str]:
        config = self.get(task_type)
        return list(config["required_fields"]) if config else []

    def validate_task(self, task: Mapping[str, Any]) -> tuple[bool, str | None]:
        """Validate a raw task mapping against its configuration.

        Returns:
            Tuple of (is_valid, error_message)
        """
        task_type = task.get("type")
        if not task_type:
            return False, "Task missing 'type' field"

        config = self.get(task_type)
        if not config:
            valid_types = ", ".join(self.get_all_valid_step_types())
            return False, f"Unknown task type: {task_type}. Valid types: {valid_types}"

        for field in config["required_fields"]:
            value = task.get(field)
            if value is None or not str(value).strip():
                return False, f"Task type '{task_type}' missing required field: {field}"

        return True, None

    def unknown_fields(self, task: Mapping[str, Any]) -> list[str]:
        """Fields present on a task that its type does not use."""
        config = self.get(task.get("type", ""))
        if not config:
            return []
        allowed_fields = {"id", "type"} | set(config["required_fields"]) | set(config["optional_fields"])
        return [field for field in task if field not in allowed_fields]

    def get_all_valid_step_types(self) -> list[str]:
        """Get list of all valid instruction types."""
        return list(self.instruction_types.keys())
