"""
Task Registry
-------------

Centralized tracking of the background tasks the node manager dispatches
(operator launch, mindreader plugin, metrics manager, watchdog).

Features:
- Register tasks with metadata (category, description)
- Track creation time, completion state, cancellation, errors
- Introspection API for debugging
- Hand active tasks to the shutdown coordinator for cancellation
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)


# ---------------------------------------------------------------------------
# TASK CATEGORY ENUM
# ---------------------------------------------------------------------------

class TaskCategory(Enum):
    """Logical grouping of asynchronous tasks."""
    OPERATOR = auto()
    MINDREADER = auto()
    METRICS = auto()
    WATCHDOG = auto()
    GRPC = auto()
    LIFECYCLE = auto()
    GENERAL = auto()


# ---------------------------------------------------------------------------
# TASK METADATA
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskInfo:
    """Immutable metadata captured at task creation time."""
    id: int
    category: TaskCategory
    description: str
    created_at: str  # ISO UTC string


@dataclass
class TaskRecord:
    """Internal structure tracking task state."""
    task: asyncio.Task
    info: TaskInfo
    cancelled: bool = False
    finished_with_error: Optional[BaseException] = None
    finished_at: Optional[str] = None


# ---------------------------------------------------------------------------
# TASK REGISTRY SINGLETON
# ---------------------------------------------------------------------------

class TaskRegistry:
    """
    Global registry for the app's background tasks.

    Responsibilities:
    - Track tasks and metadata
    - Detect and log task failures
    - Expose active tasks to the shutdown coordinator
    """

    _instance: Optional["TaskRegistry"] = None

    def __init__(self) -> None:
        self._records: Dict[int, TaskRecord] = {}
        self._next_id: int = 1

    @classmethod
    def instance(cls) -> "TaskRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(
        self,
        task: asyncio.Task,
        category: TaskCategory,
        description: str,
    ) -> int:
        """Register a new task with metadata."""
        task_id = self._next_id
        self._next_id += 1

        info = TaskInfo(
            id=task_id,
            category=category,
            description=description,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._records[task_id] = TaskRecord(task=task, info=info)

        log.debug(f"[Task {task_id}] Registered ({category.name}) - {description}")

        task.add_done_callback(self._on_task_done)
        return task_id

    def _on_task_done(self, task: asyncio.Task) -> None:
        record = self._get_record_by_task(task)
        if record is None:
            return

        record.finished_at = datetime.now(timezone.utc).isoformat()
        if task.cancelled():
            record.cancelled = True
            log.debug(f"[Task {record.info.id}] Cancelled - {record.info.description}")
            return

        exc = task.exception()
        if exc is not None:
            record.finished_with_error = exc
            log.error(
                f"[Task {record.info.id}] FAILED - {record.info.description}",
                error=repr(exc),
            )
        else:
            log.debug(f"[Task {record.info.id}] Completed - {record.info.description}")

    def _get_record_by_task(self, task: asyncio.Task) -> Optional[TaskRecord]:
        for record in self._records.values():
            if record.task is task:
                return record
        return None

    # -----------------------------
    # Public API
    # -----------------------------

    def active(self) -> List[TaskRecord]:
        """Return only tasks that are still running."""
        return [r for r in self._records.values() if not r.task.done()]

    def failed(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.finished_with_error is not None]

    def cancelled(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.cancelled]

    def by_category(self, category: TaskCategory) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.info.category is category]

    def summary(self) -> str:
        """Return human-readable summary for logs."""
        return (
            f"Tasks: total={len(self._records)}, running={len(self.active())}, "
            f"failed={len(self.failed())}, cancelled={len(self.cancelled())}"
        )

    def prune(self) -> int:
        """Forget finished tasks. Returns how many records were dropped."""
        done = [task_id for task_id, r in self._records.items() if r.task.done()]
        for task_id in done:
            del self._records[task_id]
        return len(done)

    def get_tasks_for_shutdown(
        self,
        exclude: Optional[List[asyncio.Task]] = None
    ) -> List[asyncio.Task]:
        """Return running tasks of the current loop that should be cancelled."""
        exclude = exclude or []
        loop = asyncio.get_running_loop()
        tasks = [
            r.task for r in self._records.values()
            if not r.task.done()
            and r.task.get_loop() is loop
            and r.task not in exclude
        ]

        log.debug(f"Shutdown: {len(tasks)} tasks to cancel")
        return tasks


# ---------------------------------------------------------------------------
# Convenience wrappers
# ---------------------------------------------------------------------------

def create_tracked_task(
    coro,
    *,
    category: TaskCategory,
    description: str,
) -> asyncio.Task:
    """Create and register a task in a single call."""
    task = asyncio.get_running_loop().create_task(coro, name=description)
    TaskRegistry.instance().register(task=task, category=category, description=description)
    return task


def launch_tracked(
    fn: Callable[..., Any],
    *args: Any,
    category: TaskCategory,
    description: str,
) -> asyncio.Task:
    """
    Run fn(*args) in the background, whatever its flavour.

    Coroutine functions (or callables returning an awaitable) run on the
    loop; plain blocking callables run in a worker thread.
    """
    if inspect.iscoroutinefunction(fn):
        coro = fn(*args)
    else:
        coro = _call_blocking_or_await(fn, *args)
    return create_tracked_task(coro, category=category, description=description)


async def _call_blocking_or_await(fn: Callable[..., Any], *args: Any) -> Any:
    result = await asyncio.to_thread(fn, *args)
    if inspect.isawaitable(result):
        result = await result
    return result
