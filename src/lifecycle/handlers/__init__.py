from .grpc_server_shutdown_handler import GRPCServerShutdownHandler
from .task_cancellation_handler import TaskCancellationHandler

__all__ = [
    "GRPCServerShutdownHandler",
    "TaskCancellationHandler",
]
