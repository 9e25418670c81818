"""Workflow document validation shared between loading and static checks."""

import json
import logging
import threading
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator

from .models import WorkflowValidationError
from .step_registry import JUMP_FIELDS, StepRegistry

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.json"


class ValidationMode(Enum):
    """What loading does when a document fails validation."""

    NONE = "none"  # Skip validation entirely
    WARN_ONLY = "warn_only"  # Validate, log a warning, keep going
    FAIL_FAST = "fail_fast"  # Validate and raise

    @classmethod
    def from_value(cls, value: "str | ValidationMode") -> "ValidationMode":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Unknown validation mode: {value}. Must be one of: {[m.value for m in cls]}")


# Compiled schema validator, built on first use
_schema_validator: Draft7Validator | None = None
_schema_lock = threading.Lock()


def get_schema_validator() -> Draft7Validator:
    """Get the process-wide compiled schema validator."""
    global _schema_validator

    if _schema_validator is None:
        with _schema_lock:
            if _schema_validator is None:
                with open(SCHEMA_PATH, encoding="utf-8") as f:
                    schema = json.load(f)
                Draft7Validator.check_schema(schema)
                _schema_validator = Draft7Validator(schema)

    return _schema_validator


def reset_schema_validator() -> None:
    """Drop the compiled schema validator (for testing)."""
    global _schema_validator
    with _schema_lock:
        _schema_validator = None


class WorkflowValidator:
    """Validates parsed workflow documents."""

    def __init__(self):
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.registry = StepRegistry()

    def validate(self, document: Any) -> bool:
        """Validate a workflow document.

        Args:
            document: Parsed workflow (``{"id", "start", "tasks": [...]}``)

        Returns:
            True if valid, False otherwise
        """
        self.errors = []
        self.warnings = []

        if not isinstance(document, dict):
            self.errors.append("Workflow must be a dictionary/object")
            return False

        self._validate_schema(document)

        tasks = document.get("tasks")
        if isinstance(tasks, list):
            self._validate_tasks([task for task in tasks if isinstance(task, dict)])
            self._validate_references(document, tasks)

        return len(self.errors) == 0

    def get_validation_error(self) -> str:
        """Get a formatted validation error message."""
        if not self.errors:
            return ""

        error_msg = "Workflow validation failed:\n"
        for error in self.errors:
            error_msg += f"  - {error}\n"

        if self.warnings:
            error_msg += "\nWarnings:\n"
            for warning in self.warnings:
                error_msg += f"  - {warning}\n"

        return error_msg.rstrip()

    def _validate_schema(self, document: dict[str, Any]):
        """Check the document shape against the bundled JSON schema."""
        schema_errors = sorted(get_schema_validator().iter_errors(document), key=lambda e: [str(p) for p in e.absolute_path])
        for error in schema_errors:
            error_path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
            self.errors.append(f"JSON Schema violation at {error_path}: {error.message}")

    def _validate_tasks(self, tasks: list[dict[str, Any]]):
        """Per-instruction checks against the instruction registry."""
        for index, task in enumerate(tasks):
            task_type = task.get("type")
            if not isinstance(task_type, str):
                # Reported by the schema check
                continue

            label = task.get("id", f"#{index}")
            is_valid, error_message = self.registry.validate_task(task)
            if not is_valid:
                self.errors.append(f"Task '{label}': {error_message}")

            for field in self.registry.unknown_fields(task):
                self.warnings.append(f"Task '{label}': field '{field}' is not used by '{task_type}' tasks")

    def _validate_references(self, document: dict[str, Any], tasks: list[Any]):
        """Check task ids, the start id and jump targets."""
        ids = [task.get("id") for task in tasks if isinstance(task, dict) and isinstance(task.get("id"), str)]
        known_ids = set(ids)

        for task_id, count in Counter(ids).items():
            if count > 1:
                self.errors.append(f"Duplicate task id: {task_id}")

        start = document.get("start")
        if isinstance(start, str) and start and start not in known_ids:
            self.errors.append(f"Start task not found: {start}")

        for task in tasks:
            if not isinstance(task, dict):
                continue
            for field in JUMP_FIELDS:
                target = task.get(field)
                if isinstance(target, str) and target.strip() and target not in known_ids:
                    self.warnings.append(
                        f"Task '{task.get('id')}': {field} target '{target}' does not exist"
                    )


def apply_validation(document: Any, mode: ValidationMode, source: str = "<string>") -> WorkflowValidator | None:
    """Validate ``document`` according to ``mode``.

    Returns:
        The validator used, or None when validation is disabled

    Raises:
        WorkflowValidationError: In FAIL_FAST mode when the document is invalid
    """
    if mode is ValidationMode.NONE:
        return None

    validator = WorkflowValidator()
    is_valid = validator.validate(document)

    for warning in validator.warnings:
        logger.debug(f"{source}: {warning}")

    if not is_valid:
        message = validator.get_validation_error()
        if mode is ValidationMode.WARN_ONLY:
            logger.warning(f"[TaskFlow] Workflow validation failed: {source}\n{message}")
            return validator
        raise WorkflowValidationError(f"{source}: {message}")

    return validator
