"""
Termination chain - directed graph of shutdown cascades between components.

Each edge is registered as a hook on its source shutter and recorded so the
wiring can be inspected independently of the components:

    ON_TERMINATING(app -> operator, wait)  app asks operator to stop, waits
    ON_TERMINATED(operator -> app)         operator gone, app follows

A waiting edge hands the target's terminal cause back to the source, so a
clean shutdown request on the source still ends with the target's error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from models.enums import CascadeKind
from models.protocols import Terminable
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


@dataclass(frozen=True)
class CascadeEdge:
    """One registered cascade between two components."""
    source: str
    target: str
    kind: CascadeKind
    wait: bool = False


def component_name(component: Terminable) -> str:
    return getattr(component, "name", None) or type(component).__name__


class TerminationChain:
    """
    Registers termination cascades and keeps the edge list.

    Example:
        chain = TerminationChain()
        chain.cascade_on_terminating(app, operator, wait=True)
        chain.cascade_on_terminated(operator, app)

        chain.edges()
        # [CascadeEdge('app', 'operator', ON_TERMINATING, True),
        #  CascadeEdge('operator', 'app', ON_TERMINATED, False)]
    """

    def __init__(self):
        self._edges: List[CascadeEdge] = []

    def cascade_on_terminating(
        self, source: Terminable, target: Terminable, *, wait: bool = False
    ) -> CascadeEdge:
        """
        When source starts terminating, shut target down with the same cause.

        Args:
            source: Component whose shutdown request triggers the cascade
            target: Component to shut down
            wait: Hold source's teardown until target terminated and hand
                  target's terminal cause back to source
        """
        edge = CascadeEdge(
            source=component_name(source),
            target=component_name(target),
            kind=CascadeKind.ON_TERMINATING,
            wait=wait,
        )

        async def cascade(err: Optional[BaseException]) -> Optional[BaseException]:
            log.debug(f"{edge.source} terminating, shutting down {edge.target}")
            target.shutdown(err)
            if not wait:
                return None
            return await target.wait_terminated()

        cascade.__qualname__ = f"cascade[{edge.source}->{edge.target}]"
        source.on_terminating(cascade)
        self._edges.append(edge)
        return edge

    def cascade_on_terminated(self, source: Terminable, target: Terminable) -> CascadeEdge:
        """When source finished terminating, shut target down with source's cause."""
        edge = CascadeEdge(
            source=component_name(source),
            target=component_name(target),
            kind=CascadeKind.ON_TERMINATED,
        )

        def cascade(err: Optional[BaseException]) -> None:
            log.info(f"{edge.source} terminated, shutting down {edge.target}")
            target.shutdown(err)

        cascade.__qualname__ = f"cascade[{edge.source}=>{edge.target}]"
        source.on_terminated(cascade)
        self._edges.append(edge)
        return edge

    def edges(self) -> List[CascadeEdge]:
        return list(self._edges)

    def edges_from(self, source: str) -> List[CascadeEdge]:
        return [e for e in self._edges if e.source == source]
