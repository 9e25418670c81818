"""Task declaration and workflow definition models for the task-flow engine."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .catalog import TaskCatalog


# Document attribute name -> TaskDeclaration field name
ATTRIBUTE_FIELDS: dict[str, str] = {
    "key": "key",
    "value": "value",
    "message": "message",
    "ifEqualsKey": "if_equals_key",
    "ifEqualsValue": "if_equals_value",
    "thenGo": "then_go",
    "elseGo": "else_go",
    "go": "go",
    "prompt": "prompt",
    "optionAText": "option_a_text",
    "optionAValue": "option_a_value",
    "optionBText": "option_b_text",
    "optionBValue": "option_b_value",
    "effect": "effect",
    "amount": "amount",
}


def as_text(value: Any) -> str:
    """Render a scalar document value as the string the engine sees."""
    if isinstance(value, bool):
        # YAML booleans compare against the lowercase spelling
        return "true" if value else "false"
    return str(value)


def _optional(data: Mapping[str, Any], name: str) -> str | None:
    """Read an optional attribute; blank values count as not provided."""
    value = data.get(name)
    if value is None:
        return None
    text = as_text(value)
    if not text.strip():
        return None
    return text


@dataclass(frozen=True)
class TaskDeclaration:
    """One task as declared in a workflow document.

    Pure data: which attributes a task needs depends on its type, and that is
    checked when the task executes, not here.
    """

    id: str
    type: str
    key: str | None = None
    value: str | None = None
    message: str | None = None
    if_equals_key: str | None = None
    if_equals_value: str | None = None
    then_go: str | None = None
    else_go: str | None = None
    go: str | None = None
    prompt: str | None = None
    option_a_text: str | None = None
    option_a_value: str | None = None
    option_b_text: str | None = None
    option_b_value: str | None = None
    effect: str | None = None
    amount: str | None = None
    # Compared but not hashed; mapping proxies are unhashable
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}), hash=False)

    def __post_init__(self):
        if not isinstance(self.params, MappingProxyType):
            object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TaskDeclaration":
        """Build a declaration from a parsed task mapping.

        Args:
            data: Task attributes keyed by their document names

        Returns:
            The immutable declaration

        Raises:
            MalformedCatalogError: If ``id`` or ``type`` is missing or blank
        """
        task_id = _optional(data, "id")
        if task_id is None:
            raise MalformedCatalogError("Task id is required")

        task_type = _optional(data, "type")
        if task_type is None:
            raise MalformedCatalogError(f"Task type is required, taskId={task_id}")

        attributes = {field_name: _optional(data, name) for name, field_name in ATTRIBUTE_FIELDS.items()}

        params = {}
        raw_params = data.get("params") or {}
        if not isinstance(raw_params, Mapping):
            raise MalformedCatalogError(f"Task params must be a mapping, taskId={task_id}")
        for name, value in raw_params.items():
            params[str(name)] = "" if value is None else as_text(value)

        return cls(id=task_id, type=task_type, params=params, **attributes)

    def attribute(self, name: str) -> str | None:
        """Read an attribute by its document name (e.g. ``ifEqualsKey``)."""
        field_name = ATTRIBUTE_FIELDS.get(name)
        if field_name is None:
            raise KeyError(f"Unknown task attribute: {name}")
        return getattr(self, field_name)


@dataclass
class WorkflowDefinition:
    """A loaded workflow: its id and the catalog of its tasks."""

    id: str
    catalog: "TaskCatalog"
    description: str = ""
    loaded_from: str = ""  # File path where loaded
    source: str = ""  # "project" | "global" | "path" | "string"

    @property
    def first_id(self) -> str:
        return self.catalog.first_id


class WorkflowNotFoundError(Exception):
    """Raised when a workflow cannot be found."""

    pass


class WorkflowValidationError(Exception):
    """Raised when a workflow document fails validation."""

    pass


class WorkflowExecutionError(Exception):
    """Raised when workflow execution fails."""

    pass


class MalformedCatalogError(WorkflowValidationError):
    """Raised when a task catalog cannot be built (empty, duplicate id, bad start)."""

    pass


class MissingAttributeError(WorkflowExecutionError):
    """Raised when a task lacks an attribute its instruction requires."""

    def __init__(self, attribute: str, task_id: str, task_type: str | None = None):
        self.attribute = attribute
        self.task_id = task_id
        self.task_type = task_type
        prefix = f"{task_type} requires" if task_type else "Missing required attribute"
        super().__init__(f"{prefix} {attribute}, taskId={task_id}")


class TaskNotFoundError(WorkflowExecutionError):
    """Raised when the cursor names a task that is not in the catalog."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class UnknownInstructionError(WorkflowExecutionError):
    """Raised when a task's type is not a recognized instruction."""

    def __init__(self, task_type: str, task_id: str):
        self.task_type = task_type
        self.task_id = task_id
        super().__init__(f"Unknown task type: {task_type}, taskId={task_id}")


class UnknownEffectError(WorkflowExecutionError):
    """Raised by an effect dispatcher that does not recognize the effect name."""

    def __init__(self, effect_name: str):
        self.effect_name = effect_name
        super().__init__(f"Unknown effect: {effect_name}")


class InvalidChoiceError(WorkflowExecutionError):
    """Raised when a choice callback receives a value that was not offered, or fires twice."""

    pass
