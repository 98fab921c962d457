"""
Models package - Configuration, enums, errors and collaborator protocols
"""

from .enums import ShutterState, CascadeKind, MaintenanceJob, LogLevel, LogCategory
from .config import AppConfig, MaintenanceJobConfig, VolumeSnapshotJobConfig
from .errors import (
    NodeManagerError,
    ConfigError,
    SetupError,
    GRPCServiceRegistrationError,
    GRPCServerStartError,
)

__all__ = [
    'ShutterState',
    'CascadeKind',
    'MaintenanceJob',
    'LogLevel',
    'LogCategory',
    'AppConfig',
    'MaintenanceJobConfig',
    'VolumeSnapshotJobConfig',
    'NodeManagerError',
    'ConfigError',
    'SetupError',
    'GRPCServiceRegistrationError',
    'GRPCServerStartError',
]
