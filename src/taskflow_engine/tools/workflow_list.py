"""Implementation of list_workflows MCP tool."""

import logging

from ..models.workflow_models import WorkflowListResponse
from ..workflow.loader import WorkflowLoader

logger = logging.getLogger(__name__)


def list_workflows_impl(include_global: bool = True, loader: WorkflowLoader | None = None) -> WorkflowListResponse:
    """List workflows loadable by name from the project and home directories."""
    loader = loader or WorkflowLoader()
    workflows = loader.list_available_workflows(include_global=include_global)
    logger.debug(f"Found {len(workflows)} workflows")
    return WorkflowListResponse(workflows=workflows, total=len(workflows))
