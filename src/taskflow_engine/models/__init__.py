"""Task-flow server models package."""

from .workflow_models import (
    GetWorkflowStatusResponse,
    StartWorkflowResponse,
    SubmitChoiceResponse,
    WorkflowListResponse,
)

__all__ = [
    "StartWorkflowResponse",
    "SubmitChoiceResponse",
    "GetWorkflowStatusResponse",
    "WorkflowListResponse",
]
