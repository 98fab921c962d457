"""
Error taxonomy for the node manager

Setup errors are fatal to App.run() and raised synchronously.
Runtime termination errors are never raised: they become the terminal
cause of the app's shutter.
"""

from typing import Optional


class NodeManagerError(Exception):
    """Base class for node manager errors"""
    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigError(NodeManagerError):
    """Configuration file or value is invalid"""
    def __init__(self, message: str, **details):
        super().__init__(
            code="INVALID_CONFIG",
            message=message,
            details=details,
        )


class SetupError(NodeManagerError):
    """Startup step failed before the operator was launched"""


class GRPCServiceRegistrationError(SetupError):
    """Caller-supplied gRPC service could not be registered"""
    def __init__(self, cause: BaseException):
        super().__init__(
            code="GRPC_SERVICE_REGISTRATION_FAILED",
            message=f"register extra grpc service: {cause}",
            details={"cause": repr(cause)},
        )


class GRPCServerStartError(SetupError):
    """Side gRPC server could not bind or start"""
    def __init__(self, address: str, reason: str):
        super().__init__(
            code="GRPC_SERVER_START_FAILED",
            message=f"unable to start gRPC server on '{address}': {reason}",
            details={"address": address, "reason": reason},
        )
