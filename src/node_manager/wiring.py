"""
Feature wiring - decides which optional features are on.

Everything here is driven by configuration values and module presence,
never by explicit feature flags, and has no side effect beyond the operator
configuration calls.
"""

from __future__ import annotations

import socket
from typing import Callable, List, Optional

from models.config import AppConfig
from models.enums import MaintenanceJob
from models.modules import Modules
from models.protocols import IOperator, Terminable
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


def resolve_hostname() -> str:
    """Host name of the machine, "" when it cannot be resolved."""
    try:
        return socket.gethostname()
    except OSError as e:
        log.warn("Unable to retrieve hostname from os", error=str(e))
        return ""


def configure_maintenance_jobs(
    config: AppConfig, operator: IOperator, hostname: str
) -> List[MaintenanceJob]:
    """
    Forward every enabled maintenance job schedule to the operator.

    Returns:
        The jobs that were configured
    """
    configured: List[MaintenanceJob] = []

    backup = config.auto_backup
    if backup.enabled:
        operator.configure_auto_backup(backup.period, backup.modulo, backup.hostname_match, hostname)
        configured.append(MaintenanceJob.BACKUP)

    snapshot = config.auto_snapshot
    if snapshot.enabled:
        operator.configure_auto_snapshot(snapshot.period, snapshot.modulo, snapshot.hostname_match, hostname)
        configured.append(MaintenanceJob.SNAPSHOT)

    volume = config.auto_volume_snapshot
    if volume.enabled:
        operator.configure_auto_volume_snapshot(volume.period, volume.modulo, volume.specific_blocks)
        configured.append(MaintenanceJob.VOLUME_SNAPSHOT)

    for job in configured:
        log.info(f"Configured auto {job.name.lower().replace('_', ' ')}", hostname=hostname or "<unknown>")

    return configured


def graceful_log_plugin(modules: Modules) -> Optional[Terminable]:
    """The log plugin, if present and able to shut down gracefully."""
    plugin = modules.log_plugin
    if plugin is not None and isinstance(plugin, Terminable):
        return plugin
    return None


def continuity_checker_reset(modules: Modules) -> Optional[Callable[[], None]]:
    """
    Reset callable of the available continuity checker.

    The mindreader plugin's own checker wins over a standalone
    continuity_checker module.
    """
    plugin = modules.mindreader_plugin
    if plugin is not None and plugin.has_continuity_checker():
        return plugin.reset_continuity_checker
    if modules.continuity_checker is not None:
        return modules.continuity_checker.reset
    return None
