"""
Lifecycle subsystem
-------------------

Exports the public API for:
- termination signals (Shutter) and cascade wiring
- task tracking & introspection
- process-level shutdown and cleanup handlers

External code should import from:
    from lifecycle import Shutter, TerminationChain, ShutdownCoordinator
    from lifecycle.handlers import TaskCancellationHandler
"""

from .shutter import Shutter
from .termination_chain import TerminationChain, CascadeEdge
from .shutdown_coordinator import ShutdownCoordinator
from .task_registry import TaskRegistry, TaskCategory, TaskInfo, create_tracked_task, launch_tracked
from .shutdown_protocol import IShutdownHandler
from . import handlers

__all__ = [
    "Shutter",
    "TerminationChain",
    "CascadeEdge",
    "ShutdownCoordinator",
    "TaskRegistry",
    "TaskCategory",
    "TaskInfo",
    "create_tracked_task",
    "launch_tracked",
    "IShutdownHandler",
    "handlers",
]
