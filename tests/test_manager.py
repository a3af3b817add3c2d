"""
Tests for the relay manager and its main loop
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from relaybot.application_context import ApplicationContext
from relaybot.bot import manager as manager_module
from relaybot.bot.manager import RelayManager, _run_main_loop, run_relay
from relaybot.config.model import RelayConfig
from tests.fixtures.fakes import wait_until
from tests.fixtures.sample_configs import MULTI_NETWORK_CONFIG


class _FakeSession:
    instances: list["_FakeSession"] = []

    def __init__(self, name, network, config, router, finish=False):
        self.name = name
        self.network = network
        self.router = router
        self.stopped = False
        self.finish = finish
        _FakeSession.instances.append(self)

    async def run(self):
        if self.finish:
            return
        await asyncio.Event().wait()

    def stop(self):
        self.stopped = True


@pytest.fixture
def fake_sessions(monkeypatch):
    _FakeSession.instances = []
    monkeypatch.setattr(manager_module, "NetworkSession", _FakeSession)
    monkeypatch.setattr(manager_module, "MANAGER_LOOP_SLEEP_SECONDS", 0)
    return _FakeSession.instances


@pytest.fixture
def context():
    config = RelayConfig.from_dict(MULTI_NETWORK_CONFIG)
    ctx = ApplicationContext(config)
    ctx.gateway = Mock()
    return ctx


@pytest.mark.asyncio
async def test_one_session_per_network(fake_sessions, context):
    manager = RelayManager(context.config, context)
    assert await manager.start() is True
    try:
        assert [s.name for s in fake_sessions] == ["freenode", "oftc"]
        assert fake_sessions[1].network.use_tls is True
        # All sessions share one router
        assert fake_sessions[0].router is fake_sessions[1].router is manager.router
        assert len(manager.tasks) == 2
        assert manager.running is True
    finally:
        await manager.stop_all()
    assert manager.running is False
    assert manager.tasks == []
    assert all(s.stopped for s in fake_sessions)


@pytest.mark.asyncio
async def test_start_requires_gateway(fake_sessions, context):
    context.gateway = None
    with pytest.raises(RuntimeError):
        await RelayManager(context.config, context).start()


@pytest.mark.asyncio
async def test_main_loop_stops_on_shutdown_request(fake_sessions, context):
    manager = RelayManager(context.config, context)
    await manager.start()
    manager.stop()
    await asyncio.wait_for(_run_main_loop(manager), timeout=2)
    assert manager.running is False


@pytest.mark.asyncio
async def test_main_loop_exits_when_all_tasks_finish(monkeypatch, context):
    monkeypatch.setattr(manager_module, "MANAGER_LOOP_SLEEP_SECONDS", 0)
    monkeypatch.setattr(
        manager_module,
        "NetworkSession",
        lambda *args: _FakeSession(*args, finish=True),
    )
    manager = RelayManager(context.config, context)
    await manager.start()
    await asyncio.wait_for(_run_main_loop(manager), timeout=2)
    assert all(t.done() for t in manager.tasks)
    await manager.stop_all()


@pytest.mark.asyncio
async def test_stop_all_without_start_is_noop(context):
    manager = RelayManager(context.config, context)
    await manager.stop_all()
    assert manager.running is False


@pytest.mark.asyncio
async def test_run_relay_shuts_context_down(fake_sessions, monkeypatch):
    config = RelayConfig.from_dict(MULTI_NETWORK_CONFIG)
    ctx = ApplicationContext(config)
    ctx.gateway = Mock()
    ctx.shutdown = AsyncMock()
    monkeypatch.setattr(ApplicationContext, "create", AsyncMock(return_value=ctx))
    monkeypatch.setattr(RelayManager, "setup_signal_handlers", lambda self: None)

    relay = asyncio.create_task(run_relay(config))
    await wait_until(lambda: len(fake_sessions) == 2)
    relay.cancel()
    with pytest.raises(asyncio.CancelledError):
        await relay
    ctx.shutdown.assert_awaited_once()
    assert len(fake_sessions) == 2
