import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from locus_client.client import MultiplayerClient
from locus_client.config import create_config
from locus_client.dispatch import ClientEvent, EventRegistry
from locus_client.errors import ConnectionFailed
from locus_client.session_store import MemorySessionStorage


class FakeTransport:
    """In-memory transport: records emits and lets tests play the server."""

    def __init__(self, auto_connect: bool = True, refuse: bool = False, connect_error: Optional[str] = None):
        self.auto_connect = auto_connect
        self.refuse = refuse
        self.connect_error = connect_error
        self.handlers: Dict[str, Callable[..., Any]] = {}
        self.sent: List[Tuple[str, Any]] = []
        self.awaiting: List[Tuple[str, Any, Callable[[Any], None]]] = []
        self.responders: Dict[str, Callable[[Any], Any]] = {}
        self.queued: Dict[str, Tuple[Any, tuple]] = {}
        self.connect_calls = 0
        self.disconnect_calls = 0

    def on(self, event, handler):
        self.handlers[event] = handler

    async def connect(self):
        self.connect_calls += 1
        if self.refuse:
            raise ConnectionFailed("refused")
        if self.connect_error:
            self.fire("connect_error", self.connect_error)
        elif self.auto_connect:
            self.fire("connect")

    async def emit(self, event, payload, callback=None):
        self.sent.append((event, payload))
        if callback is None:
            return
        if event in self.queued:
            body, followups = self.queued[event]
            loop = asyncio.get_running_loop()
            loop.call_soon(callback, body)
            for name, data in followups:
                loop.call_soon(self.fire, name, data)
            return
        responder = self.responders.get(event)
        if responder is not None:
            callback(responder(payload))
        else:
            self.awaiting.append((event, payload, callback))

    async def disconnect(self):
        self.disconnect_calls += 1
        self.fire("disconnect", "io client disconnect")

    # Server side helpers

    def fire(self, event, *args):
        handler = self.handlers.get(event)
        if handler:
            handler(*args)

    def respond(self, event, body):
        self.responders[event] = lambda payload: body

    def respond_queued(self, event, body, *followups):
        """Answer from the loop like a socket would, then deliver each (event, data) in followups."""
        self.queued[event] = (body, followups)

    def ack(self, event, body):
        for i, (name, _, callback) in enumerate(self.awaiting):
            if name == event:
                del self.awaiting[i]
                callback(body)
                return
        raise AssertionError(f"No call awaiting {event}")

    def drop(self):
        self.fire("disconnect", "transport close")

    def reconnect(self):
        self.fire("connect")
        self.fire("reconnect")

    def sent_events(self) -> List[str]:
        return [name for name, _ in self.sent]


class Recorder:
    """Registers into every slot and records what was dispatched."""

    def __init__(self, registry: EventRegistry):
        self.events: List[Tuple[ClientEvent, tuple]] = []
        for event in ClientEvent:
            registry.on(event, self._make(event))

    def _make(self, event):
        def handler(*args):
            self.events.append((event, args))
        return handler

    def of(self, event: ClientEvent) -> List[tuple]:
        return [args for name, args in self.events if name == event]

    def names(self) -> List[ClientEvent]:
        return [name for name, _ in self.events]


def make_snapshot(**fields) -> Dict[str, Any]:
    """Wire-format snapshot with sensible defaults."""
    state = {
        "phase": "lobby",
        "playerOrder": ["P1", "P2"],
        "currentTurnIndex": 0,
        "turnCount": 0,
        "players": {
            "P1": {"name": "Alice", "score": 0, "hand": [], "connected": True},
            "P2": {"name": "Bob", "score": 0, "hand": [], "connected": True},
        },
        "objectiveChoices": {},
        "boardState": None,
    }
    state.update(fields)
    return state


async def drain():
    """Let scheduled callbacks and tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def storage():
    return MemorySessionStorage()


@pytest.fixture
def config():
    return create_config(connect_timeout=0.2, request_timeout=0.2)


@pytest.fixture
def client(config, storage, transport):
    return MultiplayerClient(config, storage=storage, transport_factory=lambda cfg: transport)


@pytest.fixture
def recorder(client):
    return Recorder(client.registry)
