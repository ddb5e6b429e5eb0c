"""
Event dispatch registry.

A fixed set of named slots. Each slot holds at most one handler (the last
registration wins) and delivery is synchronous: ``emit`` calls the handler
immediately or, when the slot is empty, drops the event.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class ClientEvent(str, Enum):
    """Slots consumers can register into."""
    GAME_STATE_CHANGED = "game_state_changed"    # (snapshot, previous)
    PLAYER_JOINED = "player_joined"              # (PlayerJoinedEvent)
    PLAYER_LEFT = "player_left"                  # (participant_id)
    PLAYER_RECONNECTED = "player_reconnected"    # (PlayerReconnectedEvent)
    TURN_CHANGED = "turn_changed"                # (participant_id, turn_count)
    GAME_STARTED = "game_started"                # (snapshot)
    GAME_ENDED = "game_ended"                    # (final_scores, winner)
    GOAL_PHASE = "goal_phase"                    # (choices)
    ERROR = "error"                              # (exception)
    CONNECTION_CHANGED = "connection_changed"    # (connected)
    MOVE_PLAYED = "move_played"                  # (MovePlayedEvent)
    LEVEL_COMPLETE = "level_complete"            # (level_scores, level_winner, level)
    NEXT_LEVEL = "next_level"                    # (level)
    OBJECTIVES_REVEALED = "objectives_revealed"  # ()
    TIME_BOMBED = "time_bombed"                  # (TimeBombUsedEvent)
    OPPONENT_INTERACTION = "opponent_interaction"  # (OpponentInteractionEvent)
    TAUNT = "taunt"                              # (TauntEvent)
    PAUSE_CHANGED = "pause_changed"              # (PauseChangedEvent)


class EventRegistry:
    """Holds one handler per ClientEvent slot."""

    def __init__(self):
        self._handlers: Dict[ClientEvent, Handler] = {}

    @staticmethod
    def _slot(event: Union[ClientEvent, str]) -> ClientEvent:
        try:
            return ClientEvent(event)
        except ValueError:
            raise ValueError(f"Unknown event slot: {event}")

    def on(self, event: Union[ClientEvent, str], handler: Handler) -> Optional[Handler]:
        """
        Register a handler, replacing any previous one.

        Args:
            event: Slot to register into
            handler: Callable invoked with the slot's arguments

        Returns:
            The handler that was replaced, if any
        """
        slot = self._slot(event)
        previous = self._handlers.get(slot)
        self._handlers[slot] = handler
        return previous

    def off(self, event: Union[ClientEvent, str]) -> Optional[Handler]:
        """Empty a slot and return the handler that was in it."""
        return self._handlers.pop(self._slot(event), None)

    def has_handler(self, event: Union[ClientEvent, str]) -> bool:
        return self._slot(event) in self._handlers

    def clear(self) -> None:
        self._handlers.clear()

    def emit(self, event: ClientEvent, *args) -> bool:
        """
        Deliver an event to its slot.

        Returns:
            True if a handler ran, False if the event was dropped
        """
        handler = self._handlers.get(event)
        if handler is None:
            return False
        try:
            handler(*args)
        except Exception:
            logger.exception(f"Handler for {event.value} raised")
        return True
