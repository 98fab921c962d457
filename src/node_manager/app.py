"""
Node manager app - lifecycle orchestration of a managed blockchain node.

The app is itself a Shutter. run() configures the operator, wires the
termination chain, optionally starts the mindreader side gRPC server and
plugin, then dispatches the operator launch and returns. Callers wait on
app.wait_terminated() for the terminal cause.

Termination chain:

    app ──terminating, wait──▶ operator ──terminating, wait──▶ log plugin
     ▲                            │  ▲                             │
     └────────terminated──────────┘  └─────────terminated──────────┘

plus the operator launch result, forwarded into app.shutdown(). Whichever
path fires first decides the terminal cause; the others are no-ops.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

import grpc

from api.grpc_server import new_grpc_server
from api.http_options import HTTPOption, build_http_options
from api.readiness import ReadinessProber
from lifecycle.shutter import Shutter
from lifecycle.task_registry import TaskCategory, launch_tracked
from lifecycle.termination_chain import TerminationChain
from models.config import AppConfig
from models.enums import MaintenanceJob
from models.errors import GRPCServiceRegistrationError, SetupError
from models.modules import Modules
from node_manager.wiring import (
    configure_maintenance_jobs,
    continuity_checker_reset,
    graceful_log_plugin,
    resolve_hostname,
)
from services.metrics import register_metricsets
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)
grpc_log = log.with_category(LogCategory.GRPC)


class App(Shutter):
    """
    Example:
        app = App(config, Modules(operator=operator, metrics_and_readiness_manager=manager))
        await app.run()
        err = await app.wait_terminated()
    """

    def __init__(self, config: AppConfig, modules: Modules):
        super().__init__(name="node-manager-app")
        self.config = config
        self.modules = modules
        self.chain = TerminationChain()
        self.prober = ReadinessProber(config.http_addr)

        self.hostname = ""
        self.configured_jobs: List[MaintenanceJob] = []
        self.http_options: Tuple[HTTPOption, ...] = ()
        self.grpc_server: Optional[grpc.aio.Server] = None
        self.owns_grpc_server = False
        self.tasks: List[asyncio.Task] = []
        self._ran = False

    async def run(self) -> None:
        """
        Start every subsystem and return once launches are dispatched.

        A shutdown requested during startup (delay, gRPC start) makes run()
        return without launching anything.

        Raises:
            SetupError: extra gRPC service registration or side server start
                        failed; nothing was launched
            RuntimeError: run() was already called
        """
        if self._ran:
            raise RuntimeError("node manager app already running")
        self._ran = True

        has_mindreader = self.modules.mindreader_plugin is not None
        log.info("Running node manager app", config=self.config, mindreader=has_mindreader)

        self.hostname = resolve_hostname()
        log.info("Retrieved hostname from os", hostname=self.hostname)

        register_metricsets()

        self.configured_jobs = configure_maintenance_jobs(self.config, self.modules.operator, self.hostname)

        self._wire_termination_chain()

        if self.config.startup_delay:
            log.info("Delaying startup", delay=self.config.startup_delay)
            await asyncio.sleep(self.config.startup_delay.total_seconds())
            if self._stopped_during("startup delay"):
                return

        try:
            if has_mindreader or self.modules.grpc_server is not None:
                await self._start_mindreader()
        except SetupError as e:
            log.error("Unable to start mindreader", error=e.message)
            if self.modules.start_failure_handler is not None:
                self.modules.start_failure_handler()
            raise

        if self._stopped_during("mindreader start"):
            return

        # Options must be final before the operator opens its listener
        self.http_options = build_http_options(continuity_checker_reset(self.modules))

        log.info("Launching operator", http_addr=self.config.http_addr, http_options=len(self.http_options))
        self._launch(
            self.modules.metrics_and_readiness_manager.launch,
            category=TaskCategory.METRICS,
            description="Metrics and readiness manager",
        )
        operator_task = self._launch(
            self.modules.operator.launch,
            self.config.http_addr,
            *self.http_options,
            category=TaskCategory.OPERATOR,
            description="Operator launch",
        )
        operator_task.add_done_callback(self._on_operator_launch_done)

        if self.config.connection_watchdog:
            self._launch_connection_watchdog()

    async def is_ready(self) -> bool:
        """Check the operator's /healthz (100ms deadline, never raises)."""
        return await self.prober.is_ready()

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    def _wire_termination_chain(self) -> None:
        operator = self.modules.operator

        log_plugin = graceful_log_plugin(self.modules)
        if log_plugin is not None:
            # Plugin drains before the operator tears down
            self.chain.cascade_on_terminating(operator, log_plugin, wait=True)
            self.chain.cascade_on_terminated(log_plugin, operator)

        self.chain.cascade_on_terminating(self, operator, wait=True)
        self.chain.cascade_on_terminated(operator, self)

        log.debug(
            "Termination chain wired",
            edges=", ".join(f"{e.source}->{e.target} ({e.kind.name})" for e in self.chain.edges()),
        )

    async def _start_mindreader(self) -> None:
        grpc_log.info("Starting mindreader gRPC server", address=self.config.grpc_addr)

        server = self.modules.grpc_server
        self.owns_grpc_server = server is None
        if server is None:
            server = new_grpc_server()

        if self.modules.register_grpc_service is not None:
            try:
                self.modules.register_grpc_service(server)
            except Exception as e:
                raise GRPCServiceRegistrationError(e) from e

        await self.modules.start_grpc_server(server, self.config.grpc_addr, grpc_log)
        self.grpc_server = server

        plugin = self.modules.mindreader_plugin
        if plugin is not None and not self.is_terminating:
            log.info("Launching mindreader plugin", category=LogCategory.MINDREADER)
            self._launch(plugin.launch, category=TaskCategory.MINDREADER, description="Mindreader plugin")

    def _launch_connection_watchdog(self) -> None:
        watchdog = self.modules.launch_connection_watchdog
        if watchdog is None:
            log.warn("Connection watchdog enabled but no watchdog launcher given", category=LogCategory.WATCHDOG)
            return
        log.info("Launching connection watchdog", category=LogCategory.WATCHDOG)
        self._launch(
            watchdog,
            self.terminating(),
            category=TaskCategory.WATCHDOG,
            description="Connection watchdog",
        )

    def _stopped_during(self, step: str) -> bool:
        if self.is_terminating:
            log.info(f"Shutdown requested during {step}, nothing launched", state=self.state.name)
            return True
        return False

    def _launch(self, fn, *args, category: TaskCategory, description: str) -> asyncio.Task:
        task = launch_tracked(fn, *args, category=category, description=description)
        self.tasks.append(task)
        return task

    def _on_operator_launch_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            err = None
        else:
            err = task.exception()
        if err is None and self.modules.operator.terminating().is_set():
            # Operator stopping on its own: its terminated cascade carries the cause
            log.debug("Operator launch returned while operator terminating")
            return
        if err is not None:
            log.info("Operator launch returned with error, shutting down", error=repr(err))
        else:
            log.info("Operator launch returned, shutting down")
        self.shutdown(err)
