"""Ordered, id-indexed catalog of task declarations."""

from collections.abc import Iterable, Iterator

from .models import MalformedCatalogError, TaskDeclaration, TaskNotFoundError


class TaskCatalog:
    """Immutable view of a workflow's tasks in declaration order.

    Declaration order is the default execution order. Positions are indexed
    once at construction so successor lookups do not scan the task list.
    """

    def __init__(self, declarations: Iterable[TaskDeclaration], first_id: str | None = None):
        """Build the catalog.

        Args:
            declarations: Task declarations in document order
            first_id: Task to start from; defaults to the first declaration

        Raises:
            MalformedCatalogError: If the list is empty, an id repeats, or
                first_id names no task
        """
        tasks = tuple(declarations)
        if not tasks:
            raise MalformedCatalogError("Workflow has no tasks")

        positions: dict[str, int] = {}
        for index, task in enumerate(tasks):
            if task.id in positions:
                raise MalformedCatalogError(f"Duplicate task id: {task.id}")
            positions[task.id] = index

        if first_id is None:
            first_id = tasks[0].id
        elif first_id not in positions:
            raise MalformedCatalogError(f"Start task not found: {first_id}")

        self._tasks = tasks
        self._positions = positions
        self._first_id = first_id

    @property
    def first_id(self) -> str:
        return self._first_id

    def lookup(self, task_id: str) -> TaskDeclaration:
        """Get a task by id.

        Raises:
            TaskNotFoundError: If no task has this id
        """
        position = self._positions.get(task_id)
        if position is None:
            raise TaskNotFoundError(task_id)
        return self._tasks[position]

    def successor_of(self, task_id: str) -> str | None:
        """Id of the task declared right after ``task_id``, or None if it is the last."""
        position = self._positions.get(task_id)
        if position is None:
            raise TaskNotFoundError(task_id)
        next_position = position + 1
        if next_position >= len(self._tasks):
            return None
        return self._tasks[next_position].id

    def ids(self) -> list[str]:
        return [task.id for task in self._tasks]

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[TaskDeclaration]:
        return iter(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._positions

    def __repr__(self) -> str:
        return f"TaskCatalog(tasks={len(self._tasks)}, first_id={self._first_id!r})"
