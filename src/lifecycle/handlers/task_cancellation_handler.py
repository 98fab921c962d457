import asyncio
from typing import List, Optional

from lifecycle.shutdown_protocol import IShutdownHandler
from lifecycle.task_registry import TaskRegistry
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


class TaskCancellationHandler(IShutdownHandler):
    """
    Cancels the tracked background tasks still running once the app
    terminated (mindreader plugin, metrics manager, watchdog).

    The task running this handler and any explicitly excluded tasks are
    left alone.

    Priority: 40
    """

    def __init__(self, exclude_tasks: Optional[List[asyncio.Task]] = None, grace: float = 2.0):
        self.exclude_tasks = exclude_tasks or []
        self.grace = grace

    @property
    def shutdown_priority(self) -> int:
        return 40

    async def shutdown(self) -> None:
        current = asyncio.current_task()
        exclude = list(self.exclude_tasks)
        if current:
            exclude.append(current)

        registry = TaskRegistry.instance()
        log.debug("Background tasks before cancellation", summary=registry.summary())
        tasks = registry.get_tasks_for_shutdown(exclude=exclude)
        if not tasks:
            log.debug("No background tasks left to cancel")
            return

        log.info(f"Cancelling {len(tasks)} background task{'s' if len(tasks) != 1 else ''}...")
        for task in tasks:
            task.cancel(msg="shutdown")
            log.debug(f"Cancelled task: {task.get_name()}")

        done, pending = await asyncio.wait(tasks, timeout=self.grace)
        if pending:
            log.warn(
                f"{len(pending)} task(s) did not stop within {self.grace}s",
                tasks=", ".join(t.get_name() for t in pending),
            )
        else:
            log.debug("All background tasks cancelled")
