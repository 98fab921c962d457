"""
Side gRPC server for the mindreader plugin.

The app creates the server handle, lets the caller register extra services
on it, then starts it here. Binding happens in start_grpc_server(), so a
registration failure never leaves a listener open.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import grpc

from models.errors import GRPCServerStartError
from utils.logger import BoundLogger

# Blocks can be large, default gRPC message limits are 4MB
DEFAULT_SERVER_OPTIONS: Tuple[Tuple[str, int], ...] = (
    ("grpc.max_send_message_length", 1024 * 1024 * 1024),
    ("grpc.max_receive_message_length", 1024 * 1024 * 1024),
)


def new_grpc_server(options: Optional[Sequence[Tuple[str, int]]] = None) -> grpc.aio.Server:
    """Create an (unstarted) asyncio gRPC server."""
    return grpc.aio.server(options=list(options or DEFAULT_SERVER_OPTIONS))


async def start_grpc_server(server: grpc.aio.Server, address: str, log: BoundLogger) -> None:
    """
    Bind server on address and start serving.

    Raises:
        GRPCServerStartError: address missing, bind refused or start failed
    """
    if not address:
        raise GRPCServerStartError(address, "no gRPC listen address configured")

    try:
        port = server.add_insecure_port(address)
    except RuntimeError as e:
        raise GRPCServerStartError(address, str(e)) from e

    if port == 0:
        raise GRPCServerStartError(address, "bind failed")

    try:
        await server.start()
    except RuntimeError as e:
        raise GRPCServerStartError(address, str(e)) from e

    log.info("gRPC server listening", address=address, port=port)
