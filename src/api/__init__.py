"""
Management API surface of the node manager

- http_options: routes contributed to the operator's HTTP router
- readiness: /healthz prober
- grpc_server: side gRPC server start for the mindreader plugin
- main: FastAPI factory for operator implementations
"""

from .http_options import HTTPOption, build_http_options, apply_http_options
from .readiness import ReadinessProber
from .grpc_server import new_grpc_server, start_grpc_server

__all__ = [
    "HTTPOption",
    "build_http_options",
    "apply_http_options",
    "ReadinessProber",
    "new_grpc_server",
    "start_grpc_server",
]
