#!/usr/bin/env python3
"""
Workflow Validation Script

Validates task-flow workflow files (YAML or XML) for correctness and completeness.
"""

import sys
from pathlib import Path

from taskflow_engine.document_loader import format_for_path, parse_document
from taskflow_engine.workflow.catalog import TaskCatalog
from taskflow_engine.workflow.models import MalformedCatalogError, TaskDeclaration, WorkflowValidationError
from taskflow_engine.workflow.validator import WorkflowValidator


def validate_file(file_path: Path) -> bool:
    """Validate a workflow file.

    Args:
        file_path: Path to the workflow file

    Returns:
        True if valid, False otherwise
    """
    try:
        document = parse_document(file_path.read_text(encoding="utf-8"), format_for_path(file_path))
    except (ValueError, WorkflowValidationError) as e:
        print(f"❌ {e}")
        return False
    except OSError as e:
        print(f"❌ Failed to read file: {e}")
        return False

    validator = WorkflowValidator()
    is_valid = validator.validate(document)

    if is_valid:
        # Catalog construction catches what the document checks cannot
        try:
            TaskCatalog(
                [TaskDeclaration.from_mapping(task) for task in document["tasks"]],
                first_id=document.get("start"),
            )
        except MalformedCatalogError as e:
            validator.errors.append(str(e))
            is_valid = False

    if validator.errors:
        print("❌ Validation FAILED")
        print("\nErrors:")
        for error in validator.errors:
            print(f"  - {error}")
    else:
        print("✅ Validation PASSED")

    if validator.warnings:
        print("\nWarnings:")
        for warning in validator.warnings:
            print(f"  - {warning}")

    if not validator.errors and not validator.warnings:
        print("\nWorkflow is valid and follows best practices!")

    return is_valid


def main():
    """Main entry point."""
    if len(sys.argv) < 2:
        print("Usage: python validate_workflow.py <workflow.yaml|workflow.xml> [...]")
        print("\nValidates task-flow workflow files for correctness.")
        sys.exit(1)

    all_valid = True

    for file_path in sys.argv[1:]:
        path = Path(file_path)

        print(f"\nValidating: {path}")
        print("=" * (len(str(path)) + 12))

        if not path.exists():
            print(f"❌ File not found: {path}")
            all_valid = False
            continue

        is_valid = validate_file(path)

        if not is_valid:
            all_valid = False

    sys.exit(0 if all_valid else 1)


if __name__ == "__main__":
    main()
