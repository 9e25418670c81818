"""Workflow loader with name-based resolution, validation and catalog building."""

import logging
import os
from pathlib import Path
from typing import Any

from ..document_loader import DocumentLoader, get_document_loader, parse_xml_document, parse_yaml_document
from .catalog import TaskCatalog
from .models import (
    MalformedCatalogError,
    TaskDeclaration,
    WorkflowDefinition,
    WorkflowNotFoundError,
    WorkflowValidationError,
    as_text,
)
from .validator import ValidationMode, apply_validation

logger = logging.getLogger(__name__)

WORKFLOW_SUFFIXES = (".yaml", ".yml", ".xml")
DEFAULT_WORKFLOW_ID = "unknown"


class WorkflowLoader:
    """Loads workflow documents and turns them into executable definitions."""

    def __init__(
        self,
        project_root: str | None = None,
        validation_mode: ValidationMode | str | None = None,
        document_loader: DocumentLoader | None = None,
    ):
        """Initialize the workflow loader.

        Args:
            project_root: Override project root for testing
            validation_mode: What to do with invalid documents; defaults to configuration
            document_loader: Loader used to read files; defaults to the shared cached loader
        """
        self.project_root = project_root or os.getcwd()
        self.user_home = os.path.expanduser("~")
        if validation_mode is None:
            from ..config import get_config

            validation_mode = get_config().validation_mode
        self.validation_mode = ValidationMode.from_value(validation_mode)
        self.document_loader = document_loader or get_document_loader()

    def load(self, workflow_name: str) -> WorkflowDefinition:
        """Load a workflow by name with fallback resolution.

        Args:
            workflow_name: Name of workflow (e.g., "quest_a")

        Returns:
            Executable workflow definition

        Raises:
            WorkflowNotFoundError: If workflow file not found
            WorkflowValidationError: If workflow fails validation or cannot be built
        """
        searched = []
        for base, source in ((Path(self.project_root), "project"), (Path(self.user_home), "global")):
            for suffix in WORKFLOW_SUFFIXES:
                candidate = base / ".taskflow" / "workflows" / f"{workflow_name}{suffix}"
                if candidate.exists():
                    return self._load_from_file(candidate, source)
                searched.append(candidate)

        searched_list = "\n".join(f"  - {path}" for path in searched)
        raise WorkflowNotFoundError(f"Workflow '{workflow_name}' not found. Searched:\n{searched_list}")

    def load_path(self, file_path: str | Path) -> WorkflowDefinition:
        """Load a workflow from an explicit file path."""
        return self._load_from_file(Path(file_path), "path")

    def _load_from_file(self, file_path: Path, source: str) -> WorkflowDefinition:
        """Load, validate and build a workflow file."""
        try:
            document = self.document_loader.load_document(file_path)
        except FileNotFoundError as e:
            raise WorkflowNotFoundError(f"Workflow file not found: {file_path}") from e
        except ValueError as e:
            raise WorkflowValidationError(f"Error loading workflow from {file_path}: {e}") from e

        return self.build(document, str(file_path), source)

    def build(self, document: dict[str, Any], loaded_from: str = "<string>", source: str = "string") -> WorkflowDefinition:
        """Validate a parsed document and build its task catalog.

        The catalog's own checks (non-empty, unique ids) apply whatever the
        validation mode is.
        """
        apply_validation(document, self.validation_mode, loaded_from)

        tasks = document.get("tasks")
        if not isinstance(tasks, list) or not tasks:
            raise MalformedCatalogError(f"Workflow has no tasks: {loaded_from}")

        declarations = []
        for index, task_data in enumerate(tasks):
            if not isinstance(task_data, dict):
                raise MalformedCatalogError(f"Task {index} must be an object: {loaded_from}")
            declarations.append(TaskDeclaration.from_mapping(task_data))

        start = document.get("start")
        first_id = as_text(start) if start is not None and as_text(start).strip() else None
        catalog = TaskCatalog(declarations, first_id=first_id)

        workflow_id = document.get("id")
        workflow_id = as_text(workflow_id) if workflow_id is not None and as_text(workflow_id).strip() else DEFAULT_WORKFLOW_ID

        definition = WorkflowDefinition(
            id=workflow_id,
            catalog=catalog,
            description=as_text(document.get("description") or ""),
            loaded_from=loaded_from,
            source=source,
        )
        logger.debug(f"Loaded workflow {definition.id} with {len(catalog)} tasks from {loaded_from}")
        return definition

    def list_available_workflows(self, include_global: bool = True) -> list[dict[str, Any]]:
        """List all loadable workflows.

        Args:
            include_global: Whether to include workflows from the user home

        Returns:
            List of workflow metadata
        """
        workflows: list[dict[str, Any]] = []
        locations = [(Path(self.project_root), "project")]
        if include_global:
            locations.append((Path(self.user_home), "global"))

        for base, source in locations:
            workflow_dir = base / ".taskflow" / "workflows"
            if not workflow_dir.exists():
                continue

            for file_path in sorted(workflow_dir.iterdir()):
                if file_path.suffix.lower() not in WORKFLOW_SUFFIXES:
                    continue
                # Skip if already have project version
                if any(w["name"] == file_path.stem for w in workflows):
                    continue
                try:
                    workflow = self._load_from_file(file_path, source)
                except (WorkflowNotFoundError, WorkflowValidationError) as e:
                    logger.debug(f"Skipping invalid workflow file {file_path}: {e}")
                    continue

                workflows.append(
                    {
                        "name": file_path.stem,
                        "id": workflow.id,
                        "description": workflow.description,
                        "tasks": len(workflow.catalog),
                        "source": source,
                        "path": str(file_path),
                    }
                )

        return workflows


class WorkflowParser:
    """Static parser for in-memory workflow documents."""

    @staticmethod
    def parse_yaml(content: str, validation_mode: ValidationMode | str = ValidationMode.FAIL_FAST) -> WorkflowDefinition:
        loader = WorkflowLoader(validation_mode=validation_mode)
        return loader.build(parse_yaml_document(content))

    @staticmethod
    def parse_xml(content: str | bytes, validation_mode: ValidationMode | str = ValidationMode.FAIL_FAST) -> WorkflowDefinition:
        loader = WorkflowLoader(validation_mode=validation_mode)
        return loader.build(parse_xml_document(content))
