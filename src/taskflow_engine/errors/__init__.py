"""Error reporting for the task-flow engine."""

from .models import ErrorSeverity, WorkflowError, classify_exception

__all__ = [
    "ErrorSeverity",
    "WorkflowError",
    "classify_exception",
]
