"""
Tests for the app <-> operator <-> log plugin termination chain.
"""

import asyncio

import pytest

from conftest import FakeLogPlugin, FakeOperator, PlainLogPlugin, stop_app
from models.enums import CascadeKind
from models.modules import Modules
from node_manager.app import App


class BlockingCrashOperator(FakeOperator):
    """Operator whose launch blocks a worker thread and reports its own crash."""

    def __init__(self, events, crash):
        super().__init__(events)
        self.crash = crash

    def launch(self, http_addr, *http_options):
        self.events.append("operator:launch")
        self.launch_args = (http_addr, http_options)
        self.shutdown(self.crash)


async def running_app(config, operator, metrics_manager, **kwargs):
    app = App(config, Modules(operator=operator, metrics_and_readiness_manager=metrics_manager, **kwargs))
    await app.run()
    await asyncio.wait_for(operator.launched.wait(), timeout=1.0)
    return app


@pytest.mark.asyncio
async def test_clean_shutdown(base_config, operator, metrics_manager):
    app = await running_app(base_config, operator, metrics_manager)

    err = await stop_app(app)

    assert err is None
    assert operator.is_terminated
    assert operator.shutdown_requests == 1


@pytest.mark.asyncio
async def test_concurrent_shutdowns_stop_operator_once(base_config, operator, metrics_manager):
    app = await running_app(base_config, operator, metrics_manager)
    first, second = RuntimeError("first"), RuntimeError("second")

    async def request_and_wait(cause):
        app.shutdown(cause)
        return await app.wait_terminated()

    results = await asyncio.wait_for(
        asyncio.gather(request_and_wait(first), request_and_wait(second)),
        timeout=1.0,
    )

    assert results[0] is results[1] is first
    assert await operator.wait_terminated() is first
    await asyncio.sleep(0.01)
    assert operator.shutdown_requests == 1
    await stop_app(app)


@pytest.mark.asyncio
async def test_blocking_operator_failing_from_its_thread(base_config, metrics_manager, events):
    crash = RuntimeError("node process died")
    operator = BlockingCrashOperator(events, crash)
    app = App(base_config, Modules(operator=operator, metrics_and_readiness_manager=metrics_manager))

    await app.run()

    assert await asyncio.wait_for(app.wait_terminated(), timeout=1.0) is crash
    assert operator.error is crash
    await stop_app(app)



@pytest.mark.asyncio
async def test_operator_crash_terminates_app(base_config, metrics_manager, events):
    crash = RuntimeError("node process exited with code 1")
    operator = FakeOperator(events, crash_with=crash)
    app = App(base_config, Modules(operator=operator, metrics_and_readiness_manager=metrics_manager))

    await app.run()

    assert await asyncio.wait_for(app.wait_terminated(), timeout=1.0) is crash
    assert operator.error is crash
    assert "operator:teardown" in events
    await stop_app(app)


@pytest.mark.asyncio
async def test_operator_clean_exit_terminates_app(base_config, metrics_manager, events):
    operator = FakeOperator(events, exit_cleanly=True)
    app = App(base_config, Modules(operator=operator, metrics_and_readiness_manager=metrics_manager))

    await app.run()

    assert await asyncio.wait_for(app.wait_terminated(), timeout=1.0) is None
    assert operator.is_terminated
    await stop_app(app)


@pytest.mark.asyncio
async def test_operator_terminal_error_reaches_app(base_config, metrics_manager, events):
    """A clean request on the app still ends with the operator's own error."""
    failure = RuntimeError("node did not stop gracefully")
    operator = FakeOperator(events, terminal_error=failure)
    app = await running_app(base_config, operator, metrics_manager)

    app.shutdown(None)

    assert await asyncio.wait_for(app.wait_terminated(), timeout=1.0) is failure
    await stop_app(app)


@pytest.mark.asyncio
async def test_operator_self_termination_propagates(base_config, operator, metrics_manager):
    app = await running_app(base_config, operator, metrics_manager)
    cause = RuntimeError("operator gave up")

    operator.shutdown(cause)

    assert await asyncio.wait_for(app.wait_terminated(), timeout=1.0) is cause
    await stop_app(app)


@pytest.mark.asyncio
async def test_terminated_app_is_terminating_first(base_config, operator, metrics_manager):
    app = await running_app(base_config, operator, metrics_manager)

    app.shutdown(None)
    assert app.is_terminating
    await asyncio.wait_for(app.wait_terminated(), timeout=1.0)

    assert app.is_terminated
    assert operator.is_terminated
    await stop_app(app)


# ---------------------------------------------------------------------------
# Log plugin
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_log_plugin_drains_before_operator_teardown(base_config, operator, metrics_manager, events):
    plugin = FakeLogPlugin(events)
    app = await running_app(base_config, operator, metrics_manager, log_plugin=plugin)

    await stop_app(app)

    assert plugin.is_terminated
    assert events.index("log_plugin:drained") < events.index("operator:teardown")


@pytest.mark.asyncio
async def test_log_plugin_failure_terminates_everything(base_config, operator, metrics_manager, events):
    plugin = FakeLogPlugin(events)
    app = await running_app(base_config, operator, metrics_manager, log_plugin=plugin)
    cause = RuntimeError("log sink unreachable")

    plugin.shutdown(cause)

    assert await asyncio.wait_for(app.wait_terminated(), timeout=1.0) is cause
    assert operator.error is cause
    await stop_app(app)


@pytest.mark.asyncio
async def test_chain_edges(base_config, operator, metrics_manager, events):
    app = await running_app(base_config, operator, metrics_manager, log_plugin=FakeLogPlugin(events))

    edges = {(e.source, e.target, e.kind, e.wait) for e in app.chain.edges()}

    assert edges == {
        ("operator", "log-plugin", CascadeKind.ON_TERMINATING, True),
        ("log-plugin", "operator", CascadeKind.ON_TERMINATED, False),
        ("node-manager-app", "operator", CascadeKind.ON_TERMINATING, True),
        ("operator", "node-manager-app", CascadeKind.ON_TERMINATED, False),
    }
    await stop_app(app)


@pytest.mark.asyncio
async def test_plain_log_plugin_not_chained(base_config, operator, metrics_manager):
    app = await running_app(base_config, operator, metrics_manager, log_plugin=PlainLogPlugin())

    names = {e.source for e in app.chain.edges()} | {e.target for e in app.chain.edges()}

    assert names == {"node-manager-app", "operator"}
    assert await stop_app(app) is None
