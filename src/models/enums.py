"""
Enums for the node manager lifecycle
"""

from enum import Enum, auto


class ShutterState(Enum):
    """
    Termination state of a component

    RUNNING: Component is live, shutdown not requested
    TERMINATING: Shutdown requested, terminating hooks firing
    TERMINATED: Teardown complete, terminal cause is final
    """
    RUNNING = auto()
    TERMINATING = auto()
    TERMINATED = auto()


class CascadeKind(Enum):
    """When a termination cascade edge fires"""
    ON_TERMINATING = auto()   # Source started terminating
    ON_TERMINATED = auto()    # Source finished terminating


class MaintenanceJob(Enum):
    """Scheduled maintenance jobs the operator can run"""
    BACKUP = auto()
    SNAPSHOT = auto()
    VOLUME_SNAPSHOT = auto()


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, validation
    SYSTEM = auto()      # Startup, app-level events
    LIFECYCLE = auto()   # Shutter transitions, cascade wiring
    SHUTDOWN = auto()    # Signals, post-termination cleanup
    TASK = auto()        # Background task tracking
    OPERATOR = auto()    # Node process supervisor
    MINDREADER = auto()  # Block reader plugin
    GRPC = auto()
    HTTP = auto()
    READINESS = auto()
    METRICS = auto()
    WATCHDOG = auto()

    GENERAL = auto()    # Default general category
