from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    import grpc

log = get_logger().for_category(LogCategory.SHUTDOWN)


class GRPCServerShutdownHandler(IShutdownHandler):
    """
    Stops the side gRPC server the app started for the mindreader plugin.

    In-flight streams get `grace` seconds before being cancelled.

    Priority: 90 (release the port before background tasks are cancelled)
    """

    def __init__(self, server: "grpc.aio.Server", grace: float = 1.0):
        self.server = server
        self.grace = grace

    @property
    def shutdown_priority(self) -> int:
        return 90

    async def shutdown(self) -> None:
        log.info("Stopping gRPC server...", grace=f"{self.grace}s")
        await self.server.stop(self.grace)
        log.debug("gRPC server stopped")
