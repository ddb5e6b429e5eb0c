"""
Tests for call/acknowledgment correlation.
"""

import asyncio

import pytest

from locus_client.errors import NotConnected, ProtocolError, RequestTimeout, ServerRejected
from locus_client.rpc import RpcChannel

from conftest import FakeTransport


class Link:
    def __init__(self, up=True):
        self.up = up

    def __call__(self):
        return self.up


def make_channel(up=True, timeout=0.05):
    transport = FakeTransport()
    link = Link(up)
    return RpcChannel(transport, link, request_timeout=timeout), transport, link


@pytest.mark.asyncio
async def test_call_when_disconnected_sends_nothing():
    channel, transport, _ = make_channel(up=False)

    with pytest.raises(NotConnected):
        await channel.call("endTurn", {})
    assert transport.sent == []
    assert channel.pending_count == 0


@pytest.mark.asyncio
async def test_successful_ack_resolves_with_body():
    channel, transport, _ = make_channel()
    transport.respond("chooseGoal", {"success": True, "allChosen": False})

    result = await channel.call("chooseGoal", {"objectiveIndex": 1})

    assert result == {"success": True, "allChosen": False}
    assert transport.sent == [("chooseGoal", {"objectiveIndex": 1})]
    assert channel.pending_count == 0


@pytest.mark.asyncio
async def test_failure_ack_rejects_with_server_message():
    channel, transport, _ = make_channel()
    transport.respond("startGame", {"success": False, "error": "Alleen de host kan het spel starten."})

    with pytest.raises(ServerRejected) as exc_info:
        await channel.call("startGame", {})
    assert exc_info.value.message == "Alleen de host kan het spel starten."
    assert exc_info.value.operation == "startGame"


@pytest.mark.asyncio
async def test_failure_ack_without_message():
    channel, transport, _ = make_channel()
    transport.respond("undoMove", {"success": False})

    with pytest.raises(ServerRejected) as exc_info:
        await channel.call("undoMove")
    assert exc_info.value.message == "Unknown error"


@pytest.mark.asyncio
async def test_timeout_rejects_and_late_ack_is_ignored():
    channel, transport, _ = make_channel(timeout=0.02)

    with pytest.raises(RequestTimeout):
        await channel.call("endTurn", {"cardId": None})
    assert channel.pending_count == 0

    # The server finally answers: nothing happens
    transport.ack("endTurn", {"success": True})


@pytest.mark.asyncio
async def test_ack_before_timeout_wins():
    channel, transport, _ = make_channel(timeout=0.2)

    task = asyncio.ensure_future(channel.call("togglePause", {}))
    await asyncio.sleep(0)
    assert channel.pending_count == 1
    transport.ack("togglePause", {"success": True, "paused": True})

    assert (await task)["paused"] is True
    await asyncio.sleep(0.25)
    assert channel.pending_count == 0


@pytest.mark.asyncio
async def test_concurrent_calls_are_correlated_independently():
    channel, transport, _ = make_channel(timeout=0.2)

    first = asyncio.ensure_future(channel.call("buyShopItem", {"itemId": "a"}))
    second = asyncio.ensure_future(channel.call("claimFreeCard", {"cardId": "c1"}))
    await asyncio.sleep(0)

    transport.ack("claimFreeCard", {"success": True, "card": "c1"})
    transport.ack("buyShopItem", {"success": False, "error": "Niet genoeg goud"})

    assert (await second)["card"] == "c1"
    with pytest.raises(ServerRejected):
        await first


@pytest.mark.asyncio
async def test_resume_uses_server_event_name():
    channel, transport, _ = make_channel()
    transport.respond("reconnect", {"success": True, "inviteCode": "ABCDEF"})

    await channel.call("resume", {"gameId": "g1", "playerId": "p1"})

    assert transport.sent_events() == ["reconnect"]


@pytest.mark.asyncio
async def test_non_object_ack_is_protocol_error():
    channel, transport, _ = make_channel()
    transport.respond("shopReady", "ok")

    with pytest.raises(ProtocolError):
        await channel.call("shopReady")


@pytest.mark.asyncio
async def test_notify_is_fire_and_forget():
    channel, transport, link = make_channel()

    assert await channel.notify("playerInteraction", {"type": "drag"}) is True
    assert transport.sent == [("playerInteraction", {"type": "drag"})]
    assert transport.awaiting == []

    link.up = False
    assert await channel.notify("playerInteraction", {"type": "drag"}) is False
    assert len(transport.sent) == 1


@pytest.mark.asyncio
async def test_ack_hook_runs_before_caller_wakes():
    channel, transport, _ = make_channel()
    order = []
    transport.respond("startGame", {"success": True})

    result = await channel.call("startGame", {}, on_ack=lambda body: order.append("hook"))
    order.append("caller")

    assert result == {"success": True}
    assert order == ["hook", "caller"]


@pytest.mark.asyncio
async def test_ack_hook_error_fails_call():
    channel, transport, _ = make_channel()
    transport.respond("joinGame", {"success": True})

    def reject(body):
        raise ProtocolError("missing playerId")

    with pytest.raises(ProtocolError):
        await channel.call("joinGame", {}, on_ack=reject)
    assert channel.pending_count == 0


@pytest.mark.asyncio
async def test_ack_hook_skipped_on_rejection():
    channel, transport, _ = make_channel()
    calls = []
    transport.respond("joinGame", {"success": False, "error": "Spel is vol"})

    with pytest.raises(ServerRejected):
        await channel.call("joinGame", {}, on_ack=calls.append)
    assert calls == []
