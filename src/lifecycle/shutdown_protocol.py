"""
Shutdown handler protocol for post-termination cleanup.

Once the app's shutter has terminated, the ShutdownCoordinator calls
shutdown() on each registered handler in priority order.
"""

from typing import Protocol


class IShutdownHandler(Protocol):
    """
    Protocol for resources to release after the app terminated.

    Example:
        class GRPCServerShutdownHandler:
            @property
            def shutdown_priority(self) -> int:
                return 90

            async def shutdown(self) -> None:
                await self.server.stop(grace=1.0)
    """

    @property
    def shutdown_priority(self) -> int:
        """
        Higher priority shuts down earlier.
        """
        ...

    async def shutdown(self) -> None:
        ...
