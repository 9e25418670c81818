"""Implementation of submit_choice MCP tool."""

import logging

from ..active_runs import get_active_runs_manager
from ..errors import WorkflowError
from ..models.workflow_models import SubmitChoiceResponse
from ..workflow.engine import RunStatus
from ..workflow.models import InvalidChoiceError

logger = logging.getLogger(__name__)


def submit_choice_impl(run_id: str, value: str) -> SubmitChoiceResponse:
    """Answer the pending choice of a waiting run and continue it.

    Args:
        run_id: ID of the waiting run
        value: An option value, or "1"/"2" for the first/second option

    Returns:
        SubmitChoiceResponse with the new status and messages logged after the choice
    """
    logger.info(f"Submitting choice for run {run_id}: {value}")

    entry = get_active_runs_manager().get_run(run_id)
    if entry is None:
        logger.error(f"Run not found: {run_id}")
        return SubmitChoiceResponse(
            run_id=run_id,
            workflow_id="",
            status="failed",
            error={"code": "NOT_FOUND", "message": f"Run not found: {run_id}"},
        )

    run = entry.run
    message_count = len(run.messages)
    try:
        if run.status is not RunStatus.WAITING:
            raise InvalidChoiceError(f"Run {run_id} is not waiting for a choice (status: {run.status.value})")

        entry.presenter.answer(str(value))
        run.advance()

        response = SubmitChoiceResponse(
            run_id=run_id,
            workflow_id=run.workflow_id,
            status=run.status.value,
            pending_choice=entry.pending_choice(),
            messages=run.messages[message_count:],
            variables=run.store.snapshot(),
        )
        logger.info(f"Run {run_id} continued with status: {response.status}")
        return response

    except Exception as e:
        logger.error(f"Failed to submit choice for run {run_id}: {e}")
        error = WorkflowError.from_exception(e, run.workflow_id, task_id=run.pending_task_id, run_id=run_id)
        return SubmitChoiceResponse(
            run_id=run_id,
            workflow_id=run.workflow_id,
            status=run.status.value,
            pending_choice=entry.pending_choice(),
            messages=run.messages[message_count:],
            variables=run.store.snapshot(),
            error=error.to_dict(),
        )
