"""
Shutter - one-way, idempotent termination signal.

A Shutter moves RUNNING -> TERMINATING -> TERMINATED exactly once:

- shutdown(cause) requests termination. Only the first request counts;
  later requests are no-ops whatever their cause.
- On TERMINATING the terminating event is set and the on_terminating hooks
  run in registration order (async hooks are awaited), followed by the
  teardown callable given at construction.
- On TERMINATED every wait_terminated() waiter wakes up with the terminal
  cause, then the on_terminated hooks run.

Example:
    shutter = Shutter(name="operator", teardown=stop_node)
    shutter.on_terminated(lambda err: log.info("operator gone", error=err))

    shutter.shutdown(RuntimeError("node crashed"))
    err = await shutter.wait_terminated()
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from typing import Any, Callable, List, Optional

from models.enums import ShutterState
from models.protocols import TerminationHook
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class Shutter:
    """
    Termination state machine for a single component.

    Hooks receive the termination cause (None on clean shutdown). A hook
    registered on the terminating side may return (or resolve to) an
    exception: it becomes the terminal cause if none was given.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        teardown: Optional[Callable[[Optional[BaseException]], Any]] = None,
    ):
        self.name = name or type(self).__name__
        self._teardown = teardown
        # Protected by self._lock
        self._lock = threading.Lock()
        self._state = ShutterState.RUNNING
        self._error: Optional[BaseException] = None
        self._on_terminating: List[TerminationHook] = []
        self._on_terminated: List[TerminationHook] = []

        self._terminating = asyncio.Event()
        self._terminated = asyncio.Event()
        self._teardown_task: Optional[asyncio.Task] = None
        # Loop running the teardown, bound on first use from inside a loop
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._bind_loop()

    # -----------------------------
    # State
    # -----------------------------
    @property
    def state(self) -> ShutterState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        """Terminal cause (meaningful once terminated)."""
        return self._error

    @property
    def is_terminating(self) -> bool:
        """True once shutdown was requested (stays True when terminated)."""
        return self._state is not ShutterState.RUNNING

    @property
    def is_terminated(self) -> bool:
        return self._state is ShutterState.TERMINATED

    def terminating(self) -> asyncio.Event:
        """Event set as soon as shutdown is requested."""
        return self._terminating

    def terminated(self) -> asyncio.Event:
        """Event set once teardown completed."""
        return self._terminated

    async def wait_terminated(self) -> Optional[BaseException]:
        """Block until terminated and return the terminal cause."""
        self._bind_loop()
        await self._terminated.wait()
        return self._error

    # -----------------------------
    # Hook registration
    # -----------------------------
    def on_terminating(self, hook: TerminationHook) -> None:
        """Register a hook to run when shutdown is requested."""
        self._bind_loop()
        with self._lock:
            if self._state is ShutterState.RUNNING:
                self._on_terminating.append(hook)
                return
        log.warn(
            "on_terminating hook registered after shutdown was requested, ignoring",
            shutter=self.name,
            hook=_hook_name(hook),
        )

    def on_terminated(self, hook: TerminationHook) -> None:
        """
        Register a hook to run once terminated.

        If the shutter already terminated the hook is scheduled right away.
        """
        self._bind_loop()
        with self._lock:
            if self._state is not ShutterState.TERMINATED:
                self._on_terminated.append(hook)
                return
        if self._dispatch_to_loop(self.on_terminated, hook):
            return
        self._loop.create_task(
            self._run_hook(hook, self._error, adopt=False),
            name=f"{self.name}-late-terminated-hook",
        )

    # -----------------------------
    # Transition
    # -----------------------------
    def shutdown(self, error: Optional[BaseException] = None) -> None:
        """
        Request termination with an optional cause.

        Returns immediately; teardown runs as a task on the shutter's loop.
        Safe to call from any thread: off-loop calls are handed over to the
        loop and the state only changes there.
        """
        if self._dispatch_to_loop(self.shutdown, error):
            return

        with self._lock:
            if self._state is not ShutterState.RUNNING:
                log.debug(
                    "Shutdown already requested, ignoring",
                    shutter=self.name,
                    state=self._state.name,
                )
                return
            self._state = ShutterState.TERMINATING
            self._error = error

        if error is not None:
            log.info(f"{self.name} terminating", cause=repr(error))
        else:
            log.debug(f"{self.name} terminating")

        self._terminating.set()
        self._teardown_task = self._loop.create_task(
            self._run_teardown(error), name=f"{self.name}-teardown"
        )

    def _bind_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                pass
        return self._loop

    def _dispatch_to_loop(self, method: Callable[..., None], *args: Any) -> bool:
        """
        Re-schedule method(*args) on the shutter's loop when called from
        another thread. Returns True when the call was handed over.

        Raises:
            RuntimeError: no loop bound and none running in this thread
        """
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        loop = self._bind_loop()
        if loop is None:
            raise RuntimeError(f"shutter {self.name!r} is not bound to an event loop")
        if running is loop:
            return False

        loop.call_soon_threadsafe(method, *args)
        return True

    async def _run_teardown(self, error: Optional[BaseException]) -> None:
        for hook in list(self._on_terminating):
            await self._run_hook(hook, error, adopt=True)

        if self._teardown is not None:
            await self._run_hook(self._teardown, error, adopt=True)

        with self._lock:
            self._state = ShutterState.TERMINATED
            hooks = list(self._on_terminated)
        self._terminated.set()
        log.debug(f"{self.name} terminated", cause=repr(self._error))

        for hook in hooks:
            await self._run_hook(hook, self._error, adopt=False)

    async def _run_hook(
        self, hook: TerminationHook, error: Optional[BaseException], adopt: bool
    ) -> None:
        try:
            result = hook(error)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error(
                f"{self.name} termination hook failed: {_hook_name(hook)}",
                error=repr(e),
                exc_info=True,
            )
            result = e

        if adopt and self._error is None and isinstance(result, BaseException):
            self._error = result


def _hook_name(hook: Callable) -> str:
    return getattr(hook, "__qualname__", None) or repr(hook)
