"""Thread-safe in-memory storage for workflow runs served over MCP."""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from .workflow.choices import DeferredChoicePresenter
from .workflow.engine import RunStatus, WorkflowRun

logger = logging.getLogger(__name__)


@dataclass
class ActiveRun:
    """A run together with the presenter that holds its pending choice."""

    run: WorkflowRun
    presenter: DeferredChoicePresenter
    created_at: datetime = field(default_factory=datetime.now)
    last_accessed: datetime = field(default_factory=datetime.now)

    @property
    def run_id(self) -> str:
        return self.run.run_id

    def pending_choice(self) -> dict[str, Any] | None:
        """The unanswered choice of a waiting run, with its task id."""
        if self.run.status is not RunStatus.WAITING or self.presenter.pending is None:
            return None
        choice = self.presenter.pending.to_dict()
        choice["task_id"] = self.run.pending_task_id
        return choice


class ActiveRunsManager:
    """Thread-safe in-memory storage for active runs with LRU eviction."""

    def __init__(self, max_capacity: int = 50):
        """Initialize the active runs manager.

        Args:
            max_capacity: Maximum number of runs to keep
        """
        self.max_capacity = max_capacity
        self._runs: OrderedDict[str, ActiveRun] = OrderedDict()
        self._lock = threading.RLock()

    def add_run(self, entry: ActiveRun) -> bool:
        """Add a run to storage.

        Returns:
            True if the run was added, False if run_id already exists
        """
        with self._lock:
            if entry.run_id in self._runs:
                return False

            # If at capacity, remove the least recently used run
            if len(self._runs) >= self.max_capacity:
                oldest_run_id, oldest = self._runs.popitem(last=False)
                oldest.run.cancel(f"Evicted from active runs (capacity {self.max_capacity})")
                logger.info(f"Evicted run {oldest_run_id} (capacity {self.max_capacity})")

            self._runs[entry.run_id] = entry
            return True

    def get_run(self, run_id: str) -> ActiveRun | None:
        """Get a run by id, marking it most recently used."""
        with self._lock:
            entry = self._runs.get(run_id)
            if entry is not None:
                entry.last_accessed = datetime.now()
                self._runs.move_to_end(run_id)
            return entry

    def remove_run(self, run_id: str) -> ActiveRun | None:
        """Remove and return a run by id."""
        with self._lock:
            return self._runs.pop(run_id, None)

    def list_runs(self, status: RunStatus | None = None) -> list[ActiveRun]:
        """List runs, optionally only those with the given status."""
        with self._lock:
            if status is None:
                return list(self._runs.values())
            return [entry for entry in self._runs.values() if entry.run.status is status]

    def cleanup_finished(self, max_age_seconds: int = 3600) -> list[str]:
        """Remove finished runs not accessed within ``max_age_seconds``.

        Returns:
            List of run ids that were removed
        """
        cutoff = datetime.now() - timedelta(seconds=max_age_seconds)

        with self._lock:
            expired = [
                run_id
                for run_id, entry in self._runs.items()
                if entry.run.is_finished and entry.last_accessed < cutoff
            ]
            for run_id in expired:
                del self._runs[run_id]

        return expired

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about stored runs."""
        with self._lock:
            status_counts: dict[str, int] = {}
            for entry in self._runs.values():
                status = entry.run.status.value
                status_counts[status] = status_counts.get(status, 0) + 1

            return {
                "total_runs": len(self._runs),
                "capacity": self.max_capacity,
                "capacity_used_percent": (len(self._runs) / self.max_capacity) * 100,
                "status_counts": status_counts,
            }

    def clear(self) -> int:
        """Clear all runs, cancelling those still unfinished.

        Returns:
            Number of runs that were cleared
        """
        with self._lock:
            count = len(self._runs)
            for entry in self._runs.values():
                entry.run.cancel("Active runs cleared")
            self._runs.clear()
            return count


# Global singleton instance
_active_runs_manager: ActiveRunsManager | None = None
_manager_lock = threading.Lock()


def get_active_runs_manager() -> ActiveRunsManager:
    """Get the global active runs manager instance."""
    global _active_runs_manager

    if _active_runs_manager is None:
        with _manager_lock:
            if _active_runs_manager is None:
                from .config import get_config

                config = get_config()
                _active_runs_manager = ActiveRunsManager(max_capacity=config.max_active_runs)

    return _active_runs_manager


def reset_active_runs_manager() -> None:
    """Reset the global active runs manager (for testing)."""
    global _active_runs_manager
    with _manager_lock:
        _active_runs_manager = None
