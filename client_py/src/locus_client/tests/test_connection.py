"""
Tests for connection establishment and connectivity tracking.
"""

import pytest

from locus_client.connection import ConnectionManager
from locus_client.dispatch import ClientEvent, EventRegistry
from locus_client.errors import ConnectionFailed, ConnectionTimeout

from conftest import FakeTransport, Recorder, drain


def make_manager(transport, on_reconnected=None, timeout=0.05):
    registry = EventRegistry()
    recorder = Recorder(registry)
    manager = ConnectionManager(transport, registry, connect_timeout=timeout, on_reconnected=on_reconnected)
    return manager, recorder


@pytest.mark.asyncio
async def test_establish_resolves_on_connect():
    transport = FakeTransport()
    manager, recorder = make_manager(transport)

    await manager.establish()

    assert manager.connected
    assert recorder.of(ClientEvent.CONNECTION_CHANGED) == [(True,)]


@pytest.mark.asyncio
async def test_establish_is_noop_when_connected():
    transport = FakeTransport()
    manager, _ = make_manager(transport)
    await manager.establish()
    await manager.establish()

    assert transport.connect_calls == 1


@pytest.mark.asyncio
async def test_establish_times_out_without_connect_event():
    transport = FakeTransport(auto_connect=False)
    manager, recorder = make_manager(transport, timeout=0.02)

    with pytest.raises(ConnectionTimeout) as exc_info:
        await manager.establish()

    assert exc_info.value.timeout == 0.02
    assert not manager.connected
    assert transport.disconnect_calls == 1
    assert recorder.of(ClientEvent.CONNECTION_CHANGED) == []


@pytest.mark.asyncio
async def test_connect_error_fails_fast():
    transport = FakeTransport(connect_error="server unreachable")
    manager, _ = make_manager(transport, timeout=5)

    with pytest.raises(ConnectionFailed) as exc_info:
        await manager.establish()
    assert "server unreachable" in exc_info.value.message


@pytest.mark.asyncio
async def test_refused_transport_raises_connection_failed():
    transport = FakeTransport(refuse=True)
    manager, _ = make_manager(transport)

    with pytest.raises(ConnectionFailed):
        await manager.establish()


@pytest.mark.asyncio
async def test_drop_and_reconnect_update_connectivity():
    transport = FakeTransport()
    calls = []

    async def on_reconnected():
        calls.append("resume")

    manager, recorder = make_manager(transport, on_reconnected=on_reconnected)
    await manager.establish()

    transport.drop()
    assert not manager.connected
    transport.reconnect()
    await drain()

    assert manager.connected
    assert recorder.of(ClientEvent.CONNECTION_CHANGED) == [(True,), (False,), (True,)]
    assert calls == ["resume"]


@pytest.mark.asyncio
async def test_repeated_disconnect_signals_once():
    transport = FakeTransport()
    manager, recorder = make_manager(transport)
    await manager.establish()

    transport.drop()
    transport.drop()

    assert recorder.of(ClientEvent.CONNECTION_CHANGED) == [(True,), (False,)]


@pytest.mark.asyncio
async def test_close_marks_offline():
    transport = FakeTransport()
    manager, recorder = make_manager(transport)
    await manager.establish()

    await manager.close()

    assert not manager.is_connected()
    assert transport.disconnect_calls == 1
    assert recorder.of(ClientEvent.CONNECTION_CHANGED)[-1] == (False,)


@pytest.mark.asyncio
async def test_reconnect_hook_failure_is_logged(caplog):
    transport = FakeTransport()

    async def on_reconnected():
        raise RuntimeError("storage unavailable")

    manager, _ = make_manager(transport, on_reconnected=on_reconnected)
    await manager.establish()

    transport.drop()
    transport.reconnect()
    await drain()

    assert manager.connected
    failures = [r for r in caplog.records if r.getMessage() == "Reconnect handling failed"]
    assert len(failures) == 1
    assert failures[0].exc_info[0] is RuntimeError
