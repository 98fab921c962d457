"""
Process entry helpers for programs embedding the node manager app.

    def build_modules(config: AppConfig) -> Modules:
        operator = MyOperator(...)
        return Modules(operator=operator, metrics_and_readiness_manager=...)

    if __name__ == "__main__":
        sys.exit(main("config/config.yaml", build_modules))
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Callable, Optional, Union

from lifecycle.handlers import GRPCServerShutdownHandler, TaskCancellationHandler
from lifecycle.shutdown_coordinator import ShutdownCoordinator
from managers.config_manager import ConfigManager
from models.config import AppConfig
from models.errors import NodeManagerError
from models.modules import Modules
from node_manager.app import App
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)

# Set UTF-8 encoding for output (log symbols)
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding and sys.stdout.encoding.lower() != 'utf-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore


async def run_until_terminated(
    app: App,
    *,
    install_signal_handlers: bool = True,
    cleanup_timeout: float = 15.0,
) -> Optional[BaseException]:
    """
    Run app, wait for its termination and release what it left behind.

    Returns:
        The app's terminal cause (None on clean shutdown)

    Raises:
        SetupError: app.run() failed
    """
    coordinator = ShutdownCoordinator(app, total_timeout=cleanup_timeout)
    loop = asyncio.get_running_loop()
    if install_signal_handlers:
        coordinator.setup_signal_handlers(loop)

    try:
        await app.run()

        if app.grpc_server is not None and app.owns_grpc_server:
            coordinator.register(GRPCServerShutdownHandler(app.grpc_server))
        coordinator.register(TaskCancellationHandler())

        log.info("🏁 Node manager running. Waiting for termination...")
        err = await coordinator.wait_for_shutdown()
        await coordinator.shutdown_all()
        await app.prober.aclose()
        return err
    finally:
        if install_signal_handlers:
            coordinator.remove_signal_handlers(loop)


def main(
    config_path: Union[str, Path, None],
    build_modules: Callable[[AppConfig], Modules],
) -> int:
    """
    Load configuration, build the modules, run until terminated.

    Returns:
        Process exit code: 0 on clean shutdown, 1 otherwise
    """
    try:
        config = ConfigManager(config_path).load()
    except NodeManagerError as e:
        log.error("Invalid configuration", error=e.message)
        return 1

    async def _run() -> Optional[BaseException]:
        app = App(config, build_modules(config))
        return await run_until_terminated(app)

    try:
        err = asyncio.run(_run())
    except NodeManagerError as e:
        log.error("Node manager failed to start", code=e.code, error=e.message)
        return 1
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received")
        return 1

    if err is not None:
        log.error("Node manager terminated with error", error=repr(err))
        return 1

    log.info("👋 Node manager shut down cleanly.")
    return 0
