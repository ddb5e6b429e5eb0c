"""
Request/acknowledgment correlation over the transport.

Each call emits one message with an acknowledgment callback and parks a
future. The acknowledgment and a ``call_later`` timer race to settle it; the
first one wins and the other becomes a no-op.
"""

import asyncio
import functools
import itertools
import logging
from typing import Any, Callable, Dict, Optional

from .constants import REQUEST_TIMEOUT, UNKNOWN_ERROR_MESSAGE
from .errors import NotConnected, ProtocolError, RequestTimeout, ServerRejected
from .models import PendingCall
from .ws.events import wire_event_name
from .ws.transport import Transport

logger = logging.getLogger(__name__)


class RpcChannel:
    """Turns emit-with-ack into awaitable calls."""

    def __init__(
        self,
        transport: Transport,
        is_connected: Callable[[], bool],
        request_timeout: float = REQUEST_TIMEOUT,
    ):
        self._transport = transport
        self._is_connected = is_connected
        self.request_timeout = request_timeout
        self._pending: Dict[int, PendingCall] = {}
        self._ids = itertools.count(1)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def call(
        self,
        operation: str,
        payload: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        on_ack: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> Dict[str, Any]:
        """
        Send one message and wait for its acknowledgment.

        Args:
            operation: Logical operation name
            payload: Message body
            timeout: Seconds to wait, defaults to ``request_timeout``
            on_ack: Called with a successful acknowledgment body inside the
                acknowledgment callback, ahead of any message queued behind it.
                An exception it raises fails the call.

        Returns:
            The acknowledgment body

        Raises:
            NotConnected: If the transport is down (nothing is sent)
            ServerRejected: If the acknowledgment reports failure
            RequestTimeout: If no acknowledgment arrives in time
        """
        if not self._is_connected():
            raise NotConnected(operation)

        timeout = self.request_timeout if timeout is None else timeout
        payload = payload if payload is not None else {}
        loop = asyncio.get_running_loop()

        call_id = next(self._ids)
        pending = PendingCall(call_id, operation, loop.create_future(), on_ack=on_ack)
        self._pending[call_id] = pending
        pending.timer = loop.call_later(timeout, self._on_timeout, call_id, timeout)

        try:
            await self._transport.emit(
                wire_event_name(operation),
                payload,
                callback=functools.partial(self._on_ack, call_id),
            )
            return await pending.future
        finally:
            self._discard(call_id)

    async def notify(self, operation: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        """Fire-and-forget send. Returns False if skipped because disconnected."""
        if not self._is_connected():
            return False
        await self._transport.emit(wire_event_name(operation), payload if payload is not None else {})
        return True

    def _discard(self, call_id: int) -> None:
        pending = self._pending.pop(call_id, None)
        if pending and pending.timer:
            pending.timer.cancel()

    def _on_ack(self, call_id: int, body: Any) -> None:
        pending = self._pending.get(call_id)
        if pending is None or pending.settled:
            logger.debug(f"Ignoring late acknowledgment for call {call_id}")
            return

        if not isinstance(body, dict):
            pending.future.set_exception(
                ProtocolError(f"Acknowledgment for {pending.operation} is not an object")
            )
        elif body.get("success"):
            if pending.on_ack is not None:
                try:
                    pending.on_ack(body)
                except Exception as e:
                    pending.future.set_exception(e)
                    return
            pending.future.set_result(body)
        else:
            pending.future.set_exception(
                ServerRejected(pending.operation, body.get("error") or UNKNOWN_ERROR_MESSAGE)
            )

    def _on_timeout(self, call_id: int, timeout: float) -> None:
        pending = self._pending.get(call_id)
        if pending is None or pending.settled:
            return
        logger.warning(f"Call {pending.operation} timed out after {timeout:g}s")
        pending.future.set_exception(RequestTimeout(pending.operation, timeout))
