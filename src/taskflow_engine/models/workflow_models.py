"""Dataclass models for task-flow MCP tool output schemas."""

from dataclasses import dataclass
from typing import Any


@dataclass
class StartWorkflowResponse:
    """Response schema for start_workflow tool."""

    run_id: str  # Identifier for follow-up submit_choice/get_workflow_status calls
    workflow_id: str
    status: str  # "running" | "waiting" | "completed" | "failed"
    pending_choice: dict[str, Any] | None = None  # Choice awaiting an answer, if waiting
    messages: list[str] | None = None  # Output of log tasks so far
    variables: dict[str, str] | None = None  # Variable store snapshot
    error: dict[str, Any] | None = None


@dataclass
class SubmitChoiceResponse:
    """Response schema for submit_choice tool."""

    run_id: str
    workflow_id: str
    status: str
    pending_choice: dict[str, Any] | None = None
    messages: list[str] | None = None  # Messages logged since the choice was answered
    variables: dict[str, str] | None = None
    error: dict[str, Any] | None = None


@dataclass
class GetWorkflowStatusResponse:
    """Response schema for get_workflow_status tool."""

    run_id: str
    workflow_id: str
    status: str
    current_task: str | None = None  # Task the cursor points at
    pending_choice: dict[str, Any] | None = None
    history: list[str] | None = None  # Executed task ids in order
    messages: list[str] | None = None
    variables: dict[str, str] | None = None
    error: dict[str, Any] | None = None


@dataclass
class WorkflowListResponse:
    """Response schema for list_workflows tool."""

    workflows: list[dict[str, Any]]
    total: int
