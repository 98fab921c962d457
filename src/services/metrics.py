"""Prometheus metrics for the node manager.

The node metricset (head block number, head block time drift, readiness)
is registered at app start.
Collectors are created unregistered and attached to the registry by
register_metricsets(), which may be called any number of times.

Usage:
    from services.metrics import node_metricset, register_metricsets

    register_metricsets()
    node_metricset.head_block_number.set(12_345)
"""

from __future__ import annotations

from typing import List, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Gauge
from prometheus_client.registry import Collector

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.METRICS)


class Metricset:
    """Named group of collectors registered together."""

    def __init__(self, name: str):
        self.name = name
        self._collectors: List[Collector] = []
        self._registered_in: List[CollectorRegistry] = []

    def _add(self, collector):
        self._collectors.append(collector)
        return collector

    def collectors(self) -> List[Collector]:
        return list(self._collectors)

    def is_registered(self, registry: CollectorRegistry = REGISTRY) -> bool:
        return any(r is registry for r in self._registered_in)

    def register(self, registry: CollectorRegistry = REGISTRY) -> bool:
        """
        Register all collectors. Returns False when already registered.
        """
        if self.is_registered(registry):
            log.debug(f"Metricset '{self.name}' already registered")
            return False
        for collector in self._collectors:
            registry.register(collector)
        self._registered_in.append(registry)
        log.debug(f"Registered metricset '{self.name}'", collectors=len(self._collectors))
        return True


class NodeMetricset(Metricset):
    """Head block tracking of the managed node."""

    def __init__(self, prefix: str = "node"):
        super().__init__(prefix)
        self.head_block_number = self._add(Gauge(
            f"{prefix}_head_block_number",
            "Last block number seen from the node",
            registry=None,
        ))
        self.head_block_time_drift = self._add(Gauge(
            f"{prefix}_head_block_time_drift_seconds",
            "Seconds between now and the last seen block's timestamp",
            registry=None,
        ))
        self.ready = self._add(Gauge(
            f"{prefix}_ready",
            "1 when the node is considered ready, 0 otherwise",
            registry=None,
        ))


node_metricset = NodeMetricset()


def register_metricsets(registry: Optional[CollectorRegistry] = None) -> None:
    """Register the process-wide metricsets, no-op when already done."""
    registry = registry or REGISTRY
    node_metricset.register(registry)
