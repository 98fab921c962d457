"""
Shutdown coordinator that drives process-level termination.

Turns OS signals into a shutdown request on the app's shutter, waits for
the termination chain to settle, then runs post-termination cleanup
handlers in priority order.
"""

import asyncio
import signal
from typing import List, Optional

from lifecycle.shutter import Shutter
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


class ShutdownCoordinator:
    """
    Coordinates process shutdown around a shutter.

    Example:
        coordinator = ShutdownCoordinator(app)
        coordinator.register(GRPCServerShutdownHandler(server))
        coordinator.register(TaskCancellationHandler())

        coordinator.setup_signal_handlers(loop)
        err = await coordinator.wait_for_shutdown()
        await coordinator.shutdown_all()
    """

    def __init__(
        self,
        shutter: Shutter,
        timeout_per_handler: float = 5.0,
        total_timeout: float = 15.0,
    ):
        """
        Initialize shutdown coordinator.

        Args:
            shutter: Shutter whose termination ends the process
            timeout_per_handler: Timeout for each individual handler (seconds)
            total_timeout: Total timeout for the cleanup sequence (seconds)
        """
        self._shutter = shutter
        self._handlers: List = []
        self._timeout_per_handler = timeout_per_handler
        self._total_timeout = total_timeout
        self._signal_reason: Optional[str] = None
        self._installed_signals: List[signal.Signals] = []

    def register(self, handler) -> None:
        """
        Register a cleanup handler.

        Handler must have:
        - shutdown_priority property (int)
        - async shutdown() method
        """
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {handler.__class__.__name__}")

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Install SIGINT and SIGTERM handlers that shut the shutter down.

        A second signal while terminating only logs: the chain is already
        running and must be allowed to settle.
        """
        def signal_handler(sig: signal.Signals) -> None:
            if self._shutter.is_terminating:
                log.warn(f"Signal {sig.name} received, already terminating")
                return
            self._signal_reason = sig.name
            log.info(f"Signal {sig.name} received → shutting down {self._shutter.name}")
            self._shutter.shutdown(None)

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
            self._installed_signals.append(sig)

        log.info("Signal handlers installed (SIGINT, SIGTERM)")

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

    @property
    def signal_reason(self) -> Optional[str]:
        """Name of the signal that triggered shutdown, if any."""
        return self._signal_reason

    async def wait_for_shutdown(self) -> Optional[BaseException]:
        """Wait until the shutter terminated and return its terminal cause."""
        err = await self._shutter.wait_terminated()
        reason = self._signal_reason or (repr(err) if err is not None else "clean exit")
        if err is not None:
            log.error(f"{self._shutter.name} terminated with error", reason=reason)
        else:
            log.info(f"{self._shutter.name} terminated", reason=reason)
        return err

    async def shutdown_all(self) -> None:
        """
        Run cleanup handlers in descending priority order.

        Each handler has its own timeout and the whole sequence a global one.
        A failing handler is logged and the sequence continues.
        """
        sorted_handlers = sorted(
            self._handlers, key=lambda h: h.shutdown_priority, reverse=True
        )
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        for handler in sorted_handlers:
            handler_name = handler.__class__.__name__

            elapsed = loop.time() - start_time
            if elapsed > self._total_timeout:
                log.error(
                    f"⚠️  Total shutdown timeout exceeded ({elapsed:.1f}s > {self._total_timeout}s)"
                )
                break

            try:
                log.debug(f"Shutting down {handler_name} (priority={handler.shutdown_priority})...")
                await asyncio.wait_for(handler.shutdown(), timeout=self._timeout_per_handler)
                log.debug(f"✓ {handler_name} shutdown complete")

            except asyncio.TimeoutError:
                log.error(f"⚠️  {handler_name} shutdown timeout ({self._timeout_per_handler}s)")

            except Exception as e:
                log.error(f"❌ Error shutting down {handler_name}", error=repr(e), exc_info=True)

        log.info("✓ Cleanup sequence complete")

    def get_handler(self, handler_type: type):
        for handler in self._handlers:
            if isinstance(handler, handler_type):
                return handler
        return None
