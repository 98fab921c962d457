"""
Shared fakes for node manager tests.

The operator and plugins are external collaborators: these fakes implement
just enough of their protocols to observe what the app does with them.
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lifecycle.shutter import Shutter
from models.config import AppConfig
from models.modules import Modules


class FakeOperator(Shutter):
    """
    Operator double.

    launch() blocks until the operator is asked to terminate, or raises
    crash_with right away. terminal_error is returned by the teardown so it
    becomes the operator's terminal cause on a clean shutdown request.
    """

    def __init__(
        self,
        events: Optional[List[str]] = None,
        crash_with: Optional[BaseException] = None,
        terminal_error: Optional[BaseException] = None,
        exit_cleanly: bool = False,
    ):
        super().__init__(name="operator", teardown=self._teardown)
        self.events = events if events is not None else []
        self.crash_with = crash_with
        self.terminal_error = terminal_error
        self.exit_cleanly = exit_cleanly

        self.backup_calls = []
        self.snapshot_calls = []
        self.volume_snapshot_calls = []
        self.launch_args = None
        self.launched = asyncio.Event()
        self.shutdown_requests = 0

    def configure_auto_backup(self, period, modulo, hostname_match, hostname):
        self.events.append("operator:configure_backup")
        self.backup_calls.append((period, modulo, hostname_match, hostname))

    def configure_auto_snapshot(self, period, modulo, hostname_match, hostname):
        self.events.append("operator:configure_snapshot")
        self.snapshot_calls.append((period, modulo, hostname_match, hostname))

    def configure_auto_volume_snapshot(self, period, modulo, specific_blocks):
        self.events.append("operator:configure_volume_snapshot")
        self.volume_snapshot_calls.append((period, modulo, specific_blocks))

    def shutdown(self, error=None):
        self.shutdown_requests += 1
        self.events.append("operator:shutdown_requested")
        super().shutdown(error)

    def _teardown(self, err):
        self.events.append("operator:teardown")
        return self.terminal_error

    async def launch(self, http_addr, *http_options):
        self.events.append("operator:launch")
        self.launch_args = (http_addr, http_options)
        self.launched.set()
        if self.crash_with is not None:
            raise self.crash_with
        if self.exit_cleanly:
            return
        await self.terminating().wait()


class FakeLogPlugin(Shutter):
    """Log plugin able to shut down gracefully; draining takes a moment."""

    def __init__(self, events: List[str], drain_time: float = 0.02):
        super().__init__(name="log-plugin", teardown=self._drain)
        self.events = events
        self.drain_time = drain_time
        self.lines = []

    def log_line(self, line: str) -> None:
        self.lines.append(line)

    async def _drain(self, err):
        self.events.append("log_plugin:draining")
        await asyncio.sleep(self.drain_time)
        self.events.append("log_plugin:drained")


class PlainLogPlugin:
    """Log plugin without shutdown support."""

    def __init__(self):
        self.lines = []

    def log_line(self, line: str) -> None:
        self.lines.append(line)


class FakeMindreaderPlugin:
    def __init__(self, events: Optional[List[str]] = None, continuity_checker: bool = True):
        self.events = events if events is not None else []
        self.continuity_checker = continuity_checker
        self.resets = 0
        self.launched = asyncio.Event()

    async def launch(self):
        self.events.append("mindreader:launch")
        self.launched.set()
        await asyncio.Event().wait()

    def has_continuity_checker(self) -> bool:
        return self.continuity_checker

    def reset_continuity_checker(self) -> None:
        self.resets += 1


class FakeContinuityChecker:
    def __init__(self):
        self.resets = 0

    def reset(self) -> None:
        self.resets += 1


class FakeMetricsManager:
    def __init__(self, events: Optional[List[str]] = None):
        self.events = events if events is not None else []
        self.launched = asyncio.Event()

    async def launch(self):
        self.events.append("metrics:launch")
        self.launched.set()
        await asyncio.Event().wait()

    def is_ready(self) -> bool:
        return True


class RecordingGRPCStarter:
    """Stands in for api.grpc_server.start_grpc_server."""

    def __init__(self, events: Optional[List[str]] = None, fail_with: Optional[BaseException] = None):
        self.events = events if events is not None else []
        self.fail_with = fail_with
        self.calls = []

    async def __call__(self, server, address, log):
        self.events.append("grpc:start")
        self.calls.append((server, address))
        if self.fail_with is not None:
            raise self.fail_with


async def stop_app(app, timeout: float = 2.0):
    """Shut the app down and cancel whatever it left running."""
    app.shutdown(None)
    err = await asyncio.wait_for(app.wait_terminated(), timeout=timeout)
    for task in app.tasks:
        task.cancel()
    await asyncio.gather(*app.tasks, return_exceptions=True)
    if app.grpc_server is not None and app.owns_grpc_server:
        await app.grpc_server.stop(None)
    await app.prober.aclose()
    return err


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def events():
    return []


@pytest.fixture
def operator(events):
    return FakeOperator(events)


@pytest.fixture
def metrics_manager(events):
    return FakeMetricsManager(events)


@pytest.fixture
def base_config():
    return AppConfig(http_addr="127.0.0.1:18080", grpc_addr="127.0.0.1:19000")


@pytest.fixture
def modules(operator, metrics_manager):
    return Modules(operator=operator, metrics_and_readiness_manager=metrics_manager)


@pytest.fixture
def short_delay():
    return timedelta(milliseconds=50)
