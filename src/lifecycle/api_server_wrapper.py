from __future__ import annotations
import asyncio
import uvicorn
from fastapi import FastAPI
from typing import Callable, Optional
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HTTP)


class APIServerWrapper:
    """
    Serves an operator management API under uvicorn inside the app's loop.

    uvicorn's own signal handlers are disabled: signals belong to the
    ShutdownCoordinator. port=0 binds an ephemeral port, see bound_port.

    Example (inside an operator's launch()):
        server = APIServerWrapper.for_operator(http_addr, *http_options, is_ready=self.healthy)
        await server.start()      # returns once stop() is called
    """

    def __init__(self, app: FastAPI, host: str = "127.0.0.1", port: int = 8080):
        self.app = app
        self.host = host
        self.port = port
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._started_event = asyncio.Event()

    @classmethod
    def for_operator(
        cls,
        http_addr: str,
        *http_options,
        is_ready: Optional[Callable[[], bool]] = None,
    ) -> "APIServerWrapper":
        """Build the /healthz + options API and bind it on http_addr (host:port)."""
        from api.main import create_app

        host, _, port = http_addr.rpartition(":")
        return cls(create_app(*http_options, is_ready=is_ready), host=host or "127.0.0.1", port=int(port))

    async def start(self, *, wait_started_timeout: float = 5.0) -> None:
        """
        Serve until stop() is called.

        Raises:
            RuntimeError: already started, or the socket could not be bound
        """
        if self.is_running:
            raise RuntimeError("API server already started")

        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            loop="asyncio",
            log_level="warning",
            access_log=False,
            server_header=False,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._server.install_signal_handlers = lambda: None  # type: ignore
        self._stop_event.clear()
        self._started_event.clear()

        log.info(f"🌐 Launching management API on http://{self.host}:{self.port}")
        self._serve_task = asyncio.create_task(self._server.serve(), name="UvicornServeInternal")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + wait_started_timeout
        # serve() returning early means the bind failed
        while loop.time() < deadline and not self._serve_task.done():
            if self._server.started:
                self._started_event.set()
                log.info("🌐 Management API started", port=self.bound_port)
                break
            await asyncio.sleep(0.02)

        if not self._started_event.is_set():
            await self.stop()
            raise RuntimeError(f"API server failed to start on {self.host}:{self.port}")

        try:
            await self._stop_event.wait()
        except asyncio.CancelledError:
            await self.stop()
            raise

    async def wait_started(self, timeout: float = 5.0) -> None:
        await asyncio.wait_for(self._started_event.wait(), timeout=timeout)

    async def stop(self, *, shutdown_timeout: float = 2.0) -> None:
        """Ask uvicorn to exit; force it after shutdown_timeout."""
        self._stop_event.set()
        if self._serve_task is None:
            return

        self._server.should_exit = True
        if not self._serve_task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._serve_task), timeout=shutdown_timeout)
            except asyncio.TimeoutError:
                log.warn("🌐 Management API shutdown timeout; forcing exit")
                self._server.force_exit = True
                self._serve_task.cancel()
                try:
                    await self._serve_task
                except asyncio.CancelledError:
                    log.debug("Uvicorn serve task cancelled")

        self._server = None
        self._serve_task = None
        self._started_event.clear()
        log.info("🌐 Management API stopped")

    @property
    def is_running(self) -> bool:
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port (useful with port=0)."""
        for s in getattr(self._server, "servers", None) or []:
            for sock in s.sockets:
                return sock.getsockname()[1]
        return None

    @property
    def address(self) -> Optional[str]:
        port = self.bound_port
        return f"{self.host}:{port}" if port is not None else None
