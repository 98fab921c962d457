"""
Configuration value objects

Built once by ConfigManager (or directly by an embedding program) and
never mutated afterwards.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Tuple


@dataclass(frozen=True)
class MaintenanceJobConfig:
    """
    Auto backup / auto snapshot schedule

    period: Run every `period` (0 = not time based)
    modulo: Run every `modulo` blocks (0 = not block based)
    hostname_match: If non-empty, job only applies on a host with that name
    """
    period: timedelta = timedelta(0)
    modulo: int = 0
    hostname_match: str = ""

    @property
    def enabled(self) -> bool:
        return self.period != timedelta(0) or self.modulo != 0


@dataclass(frozen=True)
class VolumeSnapshotJobConfig:
    """Auto volume snapshot schedule, optionally at explicit block numbers"""
    period: timedelta = timedelta(0)
    modulo: int = 0
    specific_blocks: Tuple[int, ...] = ()

    @property
    def enabled(self) -> bool:
        return (
            self.period != timedelta(0)
            or self.modulo != 0
            or len(self.specific_blocks) > 0
        )


@dataclass(frozen=True)
class AppConfig:
    """Node manager app configuration"""
    http_addr: str = "127.0.0.1:8080"    # Operator management API
    grpc_addr: str = ""                  # Side gRPC server (mindreader)
    startup_delay: timedelta = timedelta(0)
    connection_watchdog: bool = False
    readiness_max_latency: timedelta = timedelta(seconds=5)

    auto_backup: MaintenanceJobConfig = field(default_factory=MaintenanceJobConfig)
    auto_snapshot: MaintenanceJobConfig = field(default_factory=MaintenanceJobConfig)
    auto_volume_snapshot: VolumeSnapshotJobConfig = field(default_factory=VolumeSnapshotJobConfig)
