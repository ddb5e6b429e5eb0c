"""
Inbound event routing: snapshots go to the diff tracker, discrete
notifications are parsed and dispatched to their slots.
"""

import functools
import logging
from typing import Any

from .constants import PHASE_LEVEL_COMPLETE, PHASE_ENDED
from .diff import SnapshotTracker
from .dispatch import ClientEvent, EventRegistry
from .errors import ProtocolError
from .ws.events import InboundEventType, parse_notification
from .ws.transport import Transport

logger = logging.getLogger(__name__)


class NotificationRouter:
    """Routes inbound transport events into the dispatch registry."""

    def __init__(self, registry: EventRegistry, tracker: SnapshotTracker):
        self.registry = registry
        self.tracker = tracker

    def bind(self, transport: Transport) -> None:
        """Register a handler on the transport for every inbound event type."""
        for event_type in InboundEventType:
            transport.on(event_type.value, functools.partial(self.handle, event_type.value))

    def handle(self, event_type: str, data: Any = None) -> None:
        try:
            if event_type == InboundEventType.GAME_STATE:
                self.tracker.apply(data)
            else:
                event = parse_notification(event_type, data)
                self._dispatch(InboundEventType(event_type), event)
        except ProtocolError as e:
            logger.error(f"Dropping malformed {event_type}: {e.message}")
            self.registry.emit(ClientEvent.ERROR, e)

    def _dispatch(self, event_type: InboundEventType, event) -> None:
        emit = self.registry.emit

        if event_type == InboundEventType.PLAYER_JOINED:
            emit(ClientEvent.PLAYER_JOINED, event)
        elif event_type == InboundEventType.PLAYER_DISCONNECTED:
            emit(ClientEvent.PLAYER_LEFT, event.participant_id)
        elif event_type == InboundEventType.PLAYER_RECONNECTED:
            emit(ClientEvent.PLAYER_RECONNECTED, event)
        elif event_type == InboundEventType.MOVE_PLAYED:
            emit(ClientEvent.MOVE_PLAYED, event)
            if event.objectives_revealed:
                emit(ClientEvent.OBJECTIVES_REVEALED)
        elif event_type == InboundEventType.LEVEL_COMPLETE:
            # Already implied by a snapshot in levelComplete
            if self.tracker.phase == PHASE_LEVEL_COMPLETE:
                logger.debug("Suppressing levelComplete, snapshot already in that phase")
                return
            emit(ClientEvent.LEVEL_COMPLETE, event.level_scores, event.level_winner, event.level)
        elif event_type == InboundEventType.NEXT_LEVEL_STARTED:
            emit(ClientEvent.NEXT_LEVEL, event.level)
        elif event_type == InboundEventType.GAME_ENDED:
            # The snapshot entering ended has dispatched game_ended already
            if self.tracker.phase == PHASE_ENDED:
                logger.debug("Suppressing gameEnded, snapshot already in that phase")
                return
            emit(ClientEvent.GAME_ENDED, event.final_scores, event.winner)
        elif event_type == InboundEventType.TIME_BOMB_USED:
            emit(ClientEvent.TIME_BOMBED, event)
        elif event_type == InboundEventType.OPPONENT_INTERACTION:
            emit(ClientEvent.OPPONENT_INTERACTION, event)
        elif event_type == InboundEventType.TAUNT:
            emit(ClientEvent.TAUNT, event)
        elif event_type == InboundEventType.PAUSE_CHANGED:
            emit(ClientEvent.PAUSE_CHANGED, event)
