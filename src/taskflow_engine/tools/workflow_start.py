"""Implementation of start_workflow MCP tool."""

import logging
from pathlib import Path
from typing import Any

from ..active_runs import ActiveRun, get_active_runs_manager
from ..config import get_config
from ..errors import WorkflowError
from ..models.workflow_models import StartWorkflowResponse
from ..workflow.choices import DeferredChoicePresenter
from ..workflow.effects import create_demo_dispatcher
from ..workflow.engine import WorkflowEngine
from ..workflow.loader import WORKFLOW_SUFFIXES, WorkflowLoader
from ..workflow.models import WorkflowDefinition, as_text
from ..workflow.variables import MapVariableStore

logger = logging.getLogger(__name__)


def resolve_workflow(workflow: str, loader: WorkflowLoader | None = None) -> WorkflowDefinition:
    """Load a workflow given as a file path or a workflow name.

    Names are looked up in the configured definitions directory first, then
    through the loader's project and home directories.

    Raises:
        WorkflowNotFoundError: If no matching file exists
        WorkflowValidationError: If the file fails validation
    """
    loader = loader or WorkflowLoader()

    direct_path = Path(workflow).expanduser()
    if direct_path.suffix.lower() in WORKFLOW_SUFFIXES and direct_path.is_file():
        logger.debug(f"Loading workflow directly from path: {direct_path}")
        return loader.load_path(direct_path)

    definitions_dir = Path(get_config().workflow_definitions_path).expanduser()
    for suffix in WORKFLOW_SUFFIXES:
        candidate = definitions_dir / f"{workflow}{suffix}"
        if candidate.is_file():
            logger.debug(f"Loading workflow from definitions path: {candidate}")
            return loader.load_path(candidate)

    return loader.load(workflow)


def start_workflow_impl(
    workflow: str,
    variables: dict[str, Any] | None = None,
    loader: WorkflowLoader | None = None,
) -> StartWorkflowResponse:
    """Start a workflow run and execute it until it finishes or waits for a choice.

    Args:
        workflow: Path to a workflow file or workflow name (without extension)
        variables: Optional initial variables; values are stored as text
        loader: Loader override for testing

    Returns:
        StartWorkflowResponse with the run id, status and any pending choice
    """
    logger.info(f"Starting workflow: {workflow} with variables: {variables}")

    workflow_id = workflow
    run = None
    try:
        definition = resolve_workflow(workflow, loader)
        workflow_id = definition.id

        # null seeds are stored as empty text, as MapVariableStore.put does
        initial = {
            str(key): "" if value is None else as_text(value)
            for key, value in (variables or {}).items()
        }
        presenter = DeferredChoicePresenter()
        run = WorkflowEngine.from_definition(definition).create_run(
            choice_presenter=presenter,
            effect_dispatcher=create_demo_dispatcher(),
            store=MapVariableStore(initial),
        )
        entry = ActiveRun(run=run, presenter=presenter)
        get_active_runs_manager().add_run(entry)

        run.advance()

        response = StartWorkflowResponse(
            run_id=run.run_id,
            workflow_id=workflow_id,
            status=run.status.value,
            pending_choice=entry.pending_choice(),
            messages=list(run.messages),
            variables=run.store.snapshot(),
        )
        logger.info(f"Started run {run.run_id} of workflow {workflow_id} with status: {response.status}")
        return response

    except Exception as e:
        logger.error(f"Failed to start workflow {workflow}: {e}")
        error = WorkflowError.from_exception(e, workflow_id, run_id=run.run_id if run else None)
        return StartWorkflowResponse(
            run_id=run.run_id if run else "",
            workflow_id=workflow_id,
            status="failed",
            messages=list(run.messages) if run else None,
            variables=run.store.snapshot() if run else None,
            error=error.to_dict(),
        )
