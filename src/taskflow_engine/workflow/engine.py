"""Workflow execution engine.

A run is a small state machine: the cursor holds the id of the task about to
execute, each task is dispatched on its type, and the handler returns the
next cursor. ``None`` ends the run.

The same run object serves blocking and callback-driven choice presenters.
A presenter that answers before returning lets the loop continue in place;
one that answers later leaves the run WAITING, and :meth:`WorkflowRun.advance`
picks up from the stored cursor once the answer has been delivered.
"""

import logging
import threading
import uuid
import weakref
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum

from .catalog import TaskCatalog
from .choices import ChoicePresenter
from .effects import EffectDispatcher
from .models import (
    InvalidChoiceError,
    MissingAttributeError,
    TaskDeclaration,
    UnknownInstructionError,
    WorkflowDefinition,
    WorkflowExecutionError,
)
from .step_registry import StepRegistry
from .variables import MapVariableStore, VariableReplacer, VariableStore, interpolate

logger = logging.getLogger(__name__)

MessageSink = Callable[[str], None]

# Effect attributes forwarded to the dispatcher when present
EFFECT_PARAMETER_FIELDS = ("amount", "key", "value")


class RunStatus(Enum):
    """Lifecycle of a workflow run."""

    RUNNING = "running"
    WAITING = "waiting"
    COMPLETED = "completed"
    FAILED = "failed"


class _Suspend:
    """Marker returned by a handler when the run must wait for a choice."""


SUSPEND = _Suspend()

# Store -> the unfinished run that owns it; both sides are weak
_stores_in_use: "weakref.WeakKeyDictionary[VariableStore, weakref.ref[WorkflowRun]]" = weakref.WeakKeyDictionary()
_stores_lock = threading.Lock()


def default_message_sink(message: str) -> None:
    """Write ``log`` task output to this module's logger."""
    logger.info(f"[TaskFlow] {message}")


class WorkflowRun:
    """One execution of a workflow over a variable store."""

    def __init__(
        self,
        catalog: TaskCatalog,
        workflow_id: str = "unknown",
        store: VariableStore | None = None,
        choice_presenter: ChoicePresenter | None = None,
        effect_dispatcher: EffectDispatcher | None = None,
        message_sink: MessageSink | None = None,
        run_id: str | None = None,
    ):
        self.run_id = run_id or f"run_{uuid.uuid4().hex[:8]}"
        self.workflow_id = workflow_id
        self.catalog = catalog
        self.store = store if store is not None else MapVariableStore()
        self.choice_presenter = choice_presenter
        self.effect_dispatcher = effect_dispatcher
        self.message_sink = message_sink or default_message_sink

        self.cursor: str | None = catalog.first_id
        self.status = RunStatus.RUNNING
        self.pending_task_id: str | None = None
        self.history: list[str] = []
        self.messages: list[str] = []
        self.error: Exception | None = None
        self.created_at = datetime.now(UTC).isoformat()
        self.completed_at: str | None = None

        self._started = False
        self._registry = StepRegistry()
        self._handlers: dict[str, Callable[[TaskDeclaration], str | None | _Suspend]] = {
            "setVar": self._execute_set_var,
            "log": self._execute_log,
            "choice": self._execute_choice,
            "branch": self._execute_branch,
            "goto": self._execute_goto,
            "effect": self._execute_effect,
            "end": self._execute_end,
        }

    @property
    def is_finished(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.FAILED)

    def advance(self) -> RunStatus:
        """Execute tasks until the run ends or has to wait for a choice.

        Returns:
            The run status after this call

        Raises:
            WorkflowExecutionError: Any engine failure; the run is marked
                FAILED and the error is re-raised unchanged
        """
        if self.is_finished:
            return self.status
        if self.status is RunStatus.WAITING:
            logger.debug(f"Run {self.run_id} still waiting on choice {self.pending_task_id}")
            return self.status

        if not self._started:
            self._claim_store()
            self._started = True
            logger.info(f"[TaskFlow] Run workflow: {self.workflow_id}")

        try:
            while self.cursor is not None:
                task = self.catalog.lookup(self.cursor)
                self.history.append(task.id)
                logger.debug(f"Run {self.run_id} executing {task.type} task {task.id}")

                next_task_id = self.execute(task)
                if next_task_id is SUSPEND:
                    self.status = RunStatus.WAITING
                    self.pending_task_id = task.id
                    logger.info(f"Run {self.run_id} waiting for choice at task {task.id}")
                    return self.status

                self.cursor = next_task_id
        except Exception as e:
            self._finish(RunStatus.FAILED)
            self.error = e
            logger.error(f"Workflow {self.workflow_id} failed at task {self.cursor}: {e}")
            raise

        self._finish(RunStatus.COMPLETED)
        logger.info(f"[TaskFlow] Workflow finished: {self.workflow_id}")
        return self.status

    def execute(self, task: TaskDeclaration) -> str | None | _Suspend:
        """Execute a single task and return the next cursor."""
        handler = self._handlers.get(task.type)
        if handler is None:
            raise UnknownInstructionError(task.type, task.id)

        for attribute in self._registry.required_fields(task.type):
            self._require_non_blank(task, attribute)

        return handler(task)

    def _execute_set_var(self, task: TaskDeclaration) -> str | None:
        self.store.put(task.key, interpolate(task.value, self.store))
        return self.catalog.successor_of(task.id)

    def _execute_log(self, task: TaskDeclaration) -> str | None:
        message = interpolate(task.message, self.store)
        self.messages.append(message)
        self.message_sink(message)
        return self.catalog.successor_of(task.id)

    def _execute_choice(self, task: TaskDeclaration) -> str | None | _Suspend:
        if self.choice_presenter is None:
            raise WorkflowExecutionError(f"choice requires a choice presenter, taskId={task.id}")

        next_task_id = self.catalog.successor_of(task.id)
        offered = (task.option_a_value, task.option_b_value)
        answered = False

        def on_chosen(chosen_value: str) -> None:
            nonlocal answered
            if self.is_finished:
                raise InvalidChoiceError(f"Run {self.run_id} is {self.status.value}, taskId={task.id}")
            if answered:
                raise InvalidChoiceError(f"Choice already made, taskId={task.id}")
            if chosen_value not in offered:
                raise InvalidChoiceError(
                    f"'{chosen_value}' is not one of {list(offered)}, taskId={task.id}"
                )

            self.store.put(task.key, chosen_value)
            answered = True

            if self.status is RunStatus.WAITING and self.pending_task_id == task.id:
                self.cursor = next_task_id
                self.pending_task_id = None
                self.status = RunStatus.RUNNING
                logger.info(f"Run {self.run_id} resumed after choice {task.id}={chosen_value}")

        snapshot = self.store.snapshot()
        self.choice_presenter.present(
            VariableReplacer.replace_string(task.prompt, snapshot),
            VariableReplacer.replace_string(task.option_a_text, snapshot),
            task.option_a_value,
            VariableReplacer.replace_string(task.option_b_text, snapshot),
            task.option_b_value,
            on_chosen,
        )

        if answered:
            return next_task_id
        return SUSPEND

    def _execute_branch(self, task: TaskDeclaration) -> str:
        actual_value = self.store.get(task.if_equals_key)
        is_match = actual_value is not None and actual_value == task.if_equals_value
        return task.then_go if is_match else task.else_go

    def _execute_goto(self, task: TaskDeclaration) -> str:
        return task.go

    def _execute_effect(self, task: TaskDeclaration) -> str | None:
        if self.effect_dispatcher is None:
            raise WorkflowExecutionError(f"effect requires an effect dispatcher, taskId={task.id}")

        raw_parameters = dict(task.params)
        for name in EFFECT_PARAMETER_FIELDS:
            value = task.attribute(name)
            if value is not None:
                raw_parameters[name] = value

        parameters = VariableReplacer.replace(raw_parameters, self.store)
        self.effect_dispatcher.dispatch(task.effect, parameters, self.store)
        return self.catalog.successor_of(task.id)

    def _execute_end(self, task: TaskDeclaration) -> None:
        return None

    def _require_non_blank(self, task: TaskDeclaration, attribute: str) -> None:
        value = task.attribute(attribute)
        if value is None or not value.strip():
            raise MissingAttributeError(attribute, task.id, task.type)

    def _claim_store(self) -> None:
        with _stores_lock:
            owner_ref = _stores_in_use.get(self.store)
            owner = owner_ref() if owner_ref is not None else None
            if owner is not None and owner is not self and not owner.is_finished:
                raise WorkflowExecutionError(
                    f"Variable store is in use by unfinished run {owner.run_id}"
                )
            _stores_in_use[self.store] = weakref.ref(self)

    def _finish(self, status: RunStatus) -> None:
        self.status = status
        self.pending_task_id = None
        self.completed_at = datetime.now(UTC).isoformat()
        with _stores_lock:
            owner_ref = _stores_in_use.get(self.store)
            if owner_ref is not None and owner_ref() is self:
                del _stores_in_use[self.store]

    def cancel(self, reason: str = "Run cancelled") -> bool:
        """Stop an unfinished run and release its variable store.

        The run is marked FAILED with a :class:`WorkflowExecutionError`
        carrying ``reason``; a pending choice is withdrawn from the presenter
        and can no longer be answered.

        Returns:
            True if the run was cancelled, False if it had already finished
        """
        if self.is_finished:
            return False

        if self.status is RunStatus.WAITING and self.choice_presenter is not None:
            self.choice_presenter.withdraw()

        self.error = WorkflowExecutionError(reason)
        self._finish(RunStatus.FAILED)
        logger.info(f"Run {self.run_id} cancelled: {reason}")
        return True


class WorkflowEngine:
    """Runs the tasks of one catalog; the catalog is shared read-only by every run."""

    def __init__(self, catalog: TaskCatalog, workflow_id: str = "unknown"):
        self.catalog = catalog
        self.workflow_id = workflow_id

    @classmethod
    def from_definition(cls, definition: WorkflowDefinition) -> "WorkflowEngine":
        return cls(definition.catalog, definition.id)

    def create_run(
        self,
        choice_presenter: ChoicePresenter | None = None,
        effect_dispatcher: EffectDispatcher | None = None,
        store: VariableStore | None = None,
        message_sink: MessageSink | None = None,
    ) -> WorkflowRun:
        """Create a run positioned on the first task without executing anything."""
        return WorkflowRun(
            self.catalog,
            workflow_id=self.workflow_id,
            store=store,
            choice_presenter=choice_presenter,
            effect_dispatcher=effect_dispatcher,
            message_sink=message_sink,
        )

    def start(
        self,
        choice_presenter: ChoicePresenter | None = None,
        effect_dispatcher: EffectDispatcher | None = None,
        store: VariableStore | None = None,
        message_sink: MessageSink | None = None,
    ) -> WorkflowRun:
        """Start a run and execute until it completes or waits for a choice."""
        run = self.create_run(choice_presenter, effect_dispatcher, store, message_sink)
        run.advance()
        return run

    def run(
        self,
        choice_presenter: ChoicePresenter | None = None,
        effect_dispatcher: EffectDispatcher | None = None,
        store: VariableStore | None = None,
        message_sink: MessageSink | None = None,
    ) -> WorkflowRun:
        """Run to completion; choices must be answered before the presenter returns.

        Raises:
            WorkflowExecutionError: If the presenter left the run waiting (the
                run is cancelled and its store released), or any engine error
        """
        run = self.start(choice_presenter, effect_dispatcher, store, message_sink)
        if run.status is RunStatus.WAITING:
            message = (
                f"Workflow {self.workflow_id} is waiting for choice {run.pending_task_id}; "
                f"use start() and advance() with a deferred presenter"
            )
            run.cancel(message)
            raise run.error
        return run
