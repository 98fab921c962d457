"""
Module set handed to the node manager app.

All references are non-owning: each module is constructed, and its
lifetime managed, by the embedding program.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import grpc

from api.grpc_server import start_grpc_server
from models.protocols import (
    IContinuityChecker,
    ILogPlugin,
    IMetricsAndReadinessManager,
    IMindreaderPlugin,
    IOperator,
)
from utils.logger import BoundLogger

WatchdogLauncher = Callable[[asyncio.Event], Any]
GRPCServiceRegistrar = Callable[[grpc.aio.Server], None]
GRPCServerStarter = Callable[[grpc.aio.Server, str, BoundLogger], Awaitable[None]]


@dataclass(frozen=True)
class Modules:
    """
    Collaborators of the app.

    operator and metrics_and_readiness_manager are required, everything else
    switches a feature on by being present:

    - mindreader_plugin: app owns the side gRPC server and launches the plugin
    - grpc_server: caller-owned side gRPC server, started by the app
    - continuity_checker / plugin checker: registers GET /v1/reset_cc
    - log_plugin: chained ahead of the operator if it is Terminable
    - launch_connection_watchdog: used when config.connection_watchdog is on
    """
    operator: IOperator
    metrics_and_readiness_manager: IMetricsAndReadinessManager
    launch_connection_watchdog: Optional[WatchdogLauncher] = None
    mindreader_plugin: Optional[IMindreaderPlugin] = None
    register_grpc_service: Optional[GRPCServiceRegistrar] = None
    grpc_server: Optional[grpc.aio.Server] = None
    continuity_checker: Optional[IContinuityChecker] = None
    log_plugin: Optional[ILogPlugin] = None
    start_failure_handler: Optional[Callable[[], None]] = None
    start_grpc_server: GRPCServerStarter = start_grpc_server
