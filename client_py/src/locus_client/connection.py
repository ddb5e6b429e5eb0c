"""
Connection lifecycle: initial connect with timeout, connectivity tracking and
the reconnect hook used for session resumption.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .constants import CONNECT_TIMEOUT
from .dispatch import ClientEvent, EventRegistry
from .errors import ConnectionFailed, ConnectionTimeout
from .ws.transport import Transport

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Owns the transport's lifecycle events and the connectivity flag."""

    def __init__(
        self,
        transport: Transport,
        registry: EventRegistry,
        connect_timeout: float = CONNECT_TIMEOUT,
        on_reconnected: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.transport = transport
        self.registry = registry
        self.connect_timeout = connect_timeout
        self.on_reconnected = on_reconnected
        self.connected = False
        self._connect_waiter: Optional[asyncio.Future] = None
        self._reconnect_task: Optional[asyncio.Task] = None

        transport.on("connect", self._handle_connect)
        transport.on("disconnect", self._handle_disconnect)
        transport.on("reconnect", self._handle_reconnect)
        transport.on("connect_error", self._handle_connect_error)

    def is_connected(self) -> bool:
        return self.connected

    async def establish(self) -> None:
        """
        Open the transport and wait for the connect event.

        Raises:
            ConnectionTimeout: If nothing arrives within ``connect_timeout``
            ConnectionFailed: If the transport reports a connect error
        """
        if self.connected:
            return

        waiter = asyncio.get_running_loop().create_future()
        self._connect_waiter = waiter
        try:
            await asyncio.wait_for(self._open(waiter), timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            logger.error(f"No connection within {self.connect_timeout:g}s")
            await self.transport.disconnect()
            raise ConnectionTimeout(self.connect_timeout)
        finally:
            self._connect_waiter = None
            if waiter.done() and not waiter.cancelled():
                # Mark a connect_error outcome as retrieved
                waiter.exception()

    async def _open(self, waiter: asyncio.Future) -> None:
        await self.transport.connect()
        await waiter

    async def close(self) -> None:
        """Disconnect the transport and mark the client offline."""
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        await self.transport.disconnect()
        self._set_connected(False)

    def _set_connected(self, value: bool) -> None:
        if self.connected == value:
            return
        self.connected = value
        self.registry.emit(ClientEvent.CONNECTION_CHANGED, value)

    def _handle_connect(self) -> None:
        logger.info("Connected to server")
        if self._connect_waiter is not None and not self._connect_waiter.done():
            self._connect_waiter.set_result(True)
        self._set_connected(True)

    def _handle_connect_error(self, data=None) -> None:
        reason = str(data) if data else "connection refused"
        logger.warning(f"Connect error: {reason}")
        if self._connect_waiter is not None and not self._connect_waiter.done():
            self._connect_waiter.set_exception(ConnectionFailed(reason))

    def _handle_disconnect(self, *args) -> None:
        logger.info("Connection to server lost")
        self._set_connected(False)

    def _handle_reconnect(self) -> None:
        logger.info("Reconnected to server")
        self._set_connected(True)
        if self.on_reconnected is not None:
            self._reconnect_task = asyncio.ensure_future(self.on_reconnected())
            self._reconnect_task.add_done_callback(self._reconnect_done)

    def _reconnect_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Reconnect handling failed", exc_info=exc)
