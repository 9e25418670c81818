"""Implementation of get_workflow_status MCP tool."""

import logging

from ..active_runs import get_active_runs_manager
from ..errors import WorkflowError
from ..models.workflow_models import GetWorkflowStatusResponse

logger = logging.getLogger(__name__)


def workflow_status_impl(run_id: str) -> GetWorkflowStatusResponse:
    """Get status of a workflow run.

    Args:
        run_id: ID of the run to report on

    Returns:
        GetWorkflowStatusResponse with cursor, history, messages and variables
    """
    logger.info(f"Getting status for run: {run_id}")

    entry = get_active_runs_manager().get_run(run_id)
    if entry is None:
        logger.error(f"Run not found: {run_id}")
        return GetWorkflowStatusResponse(
            run_id=run_id,
            workflow_id="",
            status="failed",
            error={"code": "NOT_FOUND", "message": f"Run not found: {run_id}"},
        )

    run = entry.run
    error = None
    if run.error is not None:
        error = WorkflowError.from_exception(run.error, run.workflow_id, run_id=run_id).to_dict()

    return GetWorkflowStatusResponse(
        run_id=run_id,
        workflow_id=run.workflow_id,
        status=run.status.value,
        current_task=run.cursor,
        pending_choice=entry.pending_choice(),
        history=list(run.history),
        messages=list(run.messages),
        variables=run.store.snapshot(),
        error=error,
    )
