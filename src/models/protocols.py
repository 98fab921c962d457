"""
Protocols for the collaborators the node manager orchestrates.

The app never implements these: the operator, the mindreader plugin and
friends are constructed by the embedding program and handed over through
Modules.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from api.http_options import HTTPOption

TerminationHook = Callable[[Optional[BaseException]], Any]


@runtime_checkable
class Terminable(Protocol):
    """
    A component that can be told to terminate and announces when it is done.

    Shutter satisfies this protocol; the operator must, and a log plugin may
    (in which case it is chained ahead of the operator).
    """

    def shutdown(self, error: Optional[BaseException] = None) -> None:
        ...

    def on_terminating(self, hook: TerminationHook) -> None:
        ...

    def on_terminated(self, hook: TerminationHook) -> None:
        ...

    def terminating(self) -> asyncio.Event:
        ...

    async def wait_terminated(self) -> Optional[BaseException]:
        ...


class IOperator(Terminable, Protocol):
    """Process supervisor managing the node process"""

    def configure_auto_backup(
        self, period: timedelta, modulo: int, hostname_match: str, hostname: str
    ) -> None:
        ...

    def configure_auto_snapshot(
        self, period: timedelta, modulo: int, hostname_match: str, hostname: str
    ) -> None:
        ...

    def configure_auto_volume_snapshot(
        self, period: timedelta, modulo: int, specific_blocks: Sequence[int]
    ) -> None:
        ...

    async def launch(self, http_addr: str, *http_options: "HTTPOption") -> None:
        """
        Serve the management API and supervise the node until terminated.

        Returns on clean exit, raises the terminal cause otherwise.
        """
        ...


class IMindreaderPlugin(Protocol):
    """Block reader plugin fed from the node's stdout"""

    def launch(self) -> Any:
        ...

    def has_continuity_checker(self) -> bool:
        ...

    def reset_continuity_checker(self) -> None:
        ...


class IContinuityChecker(Protocol):
    def reset(self) -> None:
        ...


class ILogPlugin(Protocol):
    def log_line(self, line: str) -> None:
        ...


class IMetricsAndReadinessManager(Protocol):
    def launch(self) -> Awaitable[None]:
        ...

    def is_ready(self) -> bool:
        ...
