"""
Transport port and the default Socket.IO adapter.

Everything below the message-event abstraction (framing, heartbeats, upgrade,
reconnect back-off) is left to python-socketio. The adapter only normalizes the
lifecycle events into ``connect`` / ``disconnect`` / ``reconnect`` /
``connect_error`` and the acknowledgment callback into a single argument.
"""

import logging
from typing import Any, Callable, Dict, Optional, Protocol

import socketio
from socketio import exceptions as sio_exceptions

from ..config import ClientConfig
from ..errors import ConnectionFailed, NotConnected

logger = logging.getLogger(__name__)

LIFECYCLE_EVENTS = ("connect", "disconnect", "reconnect", "connect_error")

AckCallback = Callable[[Any], None]


class Transport(Protocol):
    """Raw duplex event channel used by the session layer."""

    async def connect(self) -> None:
        """Open the channel. Raises ConnectionFailed if it is refused."""

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        """Register the handler for an inbound or lifecycle event."""

    async def emit(self, event: str, payload: Any, callback: Optional[AckCallback] = None) -> None:
        """Send one message, optionally asking for an acknowledgment."""

    async def disconnect(self) -> None:
        """Close the channel."""


TransportFactory = Callable[[ClientConfig], Transport]


class SocketIOTransport:
    """Transport backed by ``socketio.AsyncClient``."""

    def __init__(self, config: ClientConfig):
        self.config = config
        self._sio = socketio.AsyncClient(
            reconnection=config.reconnection,
            reconnection_attempts=config.reconnection_attempts,
            reconnection_delay=config.reconnection_delay,
        )
        self._lifecycle: Dict[str, Callable[..., Any]] = {}
        self._has_connected = False

        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("connect_error", self._on_connect_error)

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        if event in LIFECYCLE_EVENTS:
            self._lifecycle[event] = handler
            return
        self._sio.on(event, handler)

    async def connect(self) -> None:
        logger.info(f"Connecting to {self.config.server_url}")
        try:
            await self._sio.connect(
                self.config.server_url,
                transports=self.config.transports,
                wait_timeout=self.config.connect_timeout,
            )
        except sio_exceptions.ConnectionError as e:
            raise ConnectionFailed(str(e))

    async def emit(self, event: str, payload: Any, callback: Optional[AckCallback] = None) -> None:
        ack = None
        if callback is not None:
            def ack(*args):
                callback(args[0] if args else None)
        try:
            await self._sio.emit(event, payload, callback=ack)
        except sio_exceptions.SocketIOError:
            raise NotConnected(event)

    async def disconnect(self) -> None:
        await self._sio.disconnect()

    def _fire(self, event: str, *args) -> None:
        handler = self._lifecycle.get(event)
        if handler:
            handler(*args)

    def _on_connect(self):
        self._fire("connect")
        if self._has_connected:
            self._fire("reconnect")
        self._has_connected = True

    def _on_disconnect(self, *args):
        # python-socketio >= 5.12 passes a reason argument
        self._fire("disconnect", *args)

    def _on_connect_error(self, data=None):
        self._fire("connect_error", data)


def socketio_transport_factory(config: ClientConfig) -> Transport:
    return SocketIOTransport(config)
