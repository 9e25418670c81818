"""Task-flow server tools implementations."""

import json
import logging
from typing import Any

from ..models.workflow_models import (
    GetWorkflowStatusResponse,
    StartWorkflowResponse,
    SubmitChoiceResponse,
    WorkflowListResponse,
)
from .submit_choice import submit_choice_impl
from .workflow_list import list_workflows_impl
from .workflow_start import start_workflow_impl
from .workflow_status import workflow_status_impl

logger = logging.getLogger(__name__)


def register_workflow_tools(mcp):
    """Register the task-flow tools with the MCP server."""

    @mcp.tool
    def start_workflow(workflow: str, variables: dict[str, Any] | str | None = None) -> StartWorkflowResponse:
        """Start a workflow run.

        Use this tool when:
        - Starting a task-flow workflow from a YAML or XML definition
        - Beginning an interactive sequence that may ask two-option questions
        - Seeding a run with initial variables

        Args:
            workflow: Path to a workflow file or workflow name (without extension)
            variables: Optional initial variables (values are stored as text)

        Examples:
            start_workflow("quest_a")
            → {"run_id": "run_1a2b3c4d", "status": "waiting", "pending_choice": {"prompt": "Help the traveler?", ...}}

            start_workflow("tutorial", {"player": "Ada"})
            → {"run_id": "run_5e6f7a8b", "status": "completed", "messages": ["Welcome, Ada"], ...}

        Note: A "waiting" run needs submit_choice before it continues.
        """
        # Convert variables if it's a JSON string
        if isinstance(variables, str):
            try:
                variables = json.loads(variables)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring variables that are not valid JSON: {variables}")
                variables = None

        return start_workflow_impl(workflow, variables)

    @mcp.tool
    def submit_choice(run_id: str, value: str) -> SubmitChoiceResponse:
        """Answer the pending choice of a waiting run and continue execution.

        Use this tool when:
        - A start_workflow or submit_choice response has status "waiting"
        - Relaying the user's pick between the two offered options

        Args:
            run_id: ID of the waiting run
            value: One of the offered option values, or "1"/"2" for the first/second option

        Examples:
            submit_choice("run_1a2b3c4d", "help")
            → {"run_id": "run_1a2b3c4d", "status": "completed", "messages": ["gold=8"], ...}

        Note: An invalid value leaves the run waiting on the same choice.
        """
        return submit_choice_impl(run_id, value)

    @mcp.tool
    def get_workflow_status(run_id: str) -> GetWorkflowStatusResponse:
        """Get current status and details of a workflow run.

        Use this tool when:
        - Checking whether a run is waiting, completed or failed
        - Inspecting the variables, messages or executed tasks of a run

        Args:
            run_id: ID of the run to check

        Examples:
            get_workflow_status("run_1a2b3c4d")
            → {"status": "waiting", "current_task": "ask", "history": ["intro", "ask"], ...}
        """
        return workflow_status_impl(run_id)

    @mcp.tool
    def list_workflows(include_global: bool = True) -> WorkflowListResponse:
        """List workflows that can be started by name.

        Args:
            include_global: Also list workflows from ~/.taskflow/workflows/

        Examples:
            list_workflows()
            → {"workflows": [{"name": "quest_a", "id": "quest_a", "tasks": 9, ...}], "total": 1}
        """
        return list_workflows_impl(include_global)


__all__ = [
    "start_workflow_impl",
    "submit_choice_impl",
    "workflow_status_impl",
    "list_workflows_impl",
    "register_workflow_tools",
]
