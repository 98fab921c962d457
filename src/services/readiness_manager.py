"""
Metrics and readiness manager

Receives head blocks from the block reader, keeps the head block metrics
up to date and decides whether the node is ready: the last head block must
be younger than readiness_max_latency.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from services.metrics import NodeMetricset, node_metricset
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.READINESS)


@dataclass(frozen=True)
class HeadBlock:
    number: int
    timestamp: datetime  # timezone aware


class MetricsAndReadinessManager:
    """
    Example:
        manager = MetricsAndReadinessManager(timedelta(seconds=5))
        create_tracked_task(manager.launch(), ...)

        manager.update_head_block(HeadBlock(1234, block_time))
        manager.is_ready()
    """

    def __init__(
        self,
        readiness_max_latency: timedelta,
        metricset: NodeMetricset = node_metricset,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.readiness_max_latency = readiness_max_latency
        self.metricset = metricset
        self._clock = clock
        self._queue: "asyncio.Queue[HeadBlock]" = asyncio.Queue(maxsize=1)
        self._last_seen: Optional[HeadBlock] = None
        self._ready = False

    def update_head_block(self, block: HeadBlock) -> None:
        """Hand over the latest head block, dropping an unconsumed older one."""
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(block)

    def is_ready(self) -> bool:
        return self._ready

    def evaluate(self, block: Optional[HeadBlock]) -> bool:
        """Update metrics and the readiness flag from the last seen block."""
        if block is None:
            self._set_ready(False)
            return False

        drift = self._clock() - block.timestamp
        self.metricset.head_block_number.set(block.number)
        self.metricset.head_block_time_drift.set(max(drift.total_seconds(), 0.0))

        ready = drift < self.readiness_max_latency
        self._set_ready(ready)
        return ready

    def _set_ready(self, ready: bool) -> None:
        if ready != self._ready:
            log.info("Readiness reporting " + ("on" if ready else "off"))
        self._ready = ready
        self.metricset.ready.set(1 if ready else 0)

    async def launch(self) -> None:
        """Consume head blocks until cancelled."""
        interval = max(self.readiness_max_latency.total_seconds(), 0.05)
        log.debug("Metrics and readiness manager launched", max_latency=self.readiness_max_latency)
        while True:
            try:
                self._last_seen = await asyncio.wait_for(self._queue.get(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            self.evaluate(self._last_seen)
