"""Error records for reporting workflow failures across the server boundary."""

import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ..workflow.models import (
    InvalidChoiceError,
    WorkflowExecutionError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Most specific class first
ERROR_CODES: list[tuple[type[Exception], str, ErrorSeverity]] = [
    (WorkflowNotFoundError, "NOT_FOUND", ErrorSeverity.MEDIUM),
    (WorkflowValidationError, "INVALID_WORKFLOW", ErrorSeverity.MEDIUM),
    (InvalidChoiceError, "INVALID_CHOICE", ErrorSeverity.LOW),
    (WorkflowExecutionError, "EXECUTION_FAILED", ErrorSeverity.HIGH),
    (ValueError, "INVALID_INPUT", ErrorSeverity.LOW),
]


def classify_exception(exception: Exception) -> tuple[str, ErrorSeverity]:
    """Map an exception to an error code and severity."""
    for error_class, code, severity in ERROR_CODES:
        if isinstance(exception, error_class):
            return code, severity
    return "OPERATION_FAILED", ErrorSeverity.CRITICAL


@dataclass
class WorkflowError:
    """Detailed information about a workflow error."""

    id: str
    workflow_id: str
    task_id: str | None
    error_type: str
    code: str
    message: str
    stack_trace: str | None
    timestamp: datetime
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    run_id: str | None = None

    original_exception: Exception | None = field(default=None, repr=False)

    @classmethod
    def from_exception(
        cls,
        exception: Exception,
        workflow_id: str,
        task_id: str | None = None,
        run_id: str | None = None,
    ) -> "WorkflowError":
        """Create a WorkflowError from an exception."""
        code, severity = classify_exception(exception)
        return cls(
            id=f"err_{uuid.uuid4().hex[:8]}",
            workflow_id=workflow_id,
            task_id=task_id if task_id is not None else getattr(exception, "task_id", None),
            error_type=type(exception).__name__,
            code=code,
            message=str(exception),
            stack_trace="".join(traceback.format_exception(exception)),
            timestamp=datetime.now(),
            severity=severity,
            run_id=run_id,
            original_exception=exception,
        )

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "run_id": self.run_id,
            "task_id": self.task_id,
            "error_type": self.error_type,
            "code": self.code,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity.value,
        }
        if include_trace:
            result["stack_trace"] = self.stack_trace
        return result
