"""Session models and data structures"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .constants import PHASE_LOBBY

Pile = Union[List[Any], int, None]


class WireModel(BaseModel):
    """Base for payloads exchanged with the server (camelCase on the wire)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class ParticipantRecord(WireModel):
    """One participant as seen in a snapshot."""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    score: Union[int, float] = 0
    hand: List[Any] = []
    draw_pile: Pile = None  # list of cards for self, count for opponents
    discard_pile: Pile = None
    bonus_inventory: Dict[str, Any] = {}
    score_breakdown: Optional[Dict[str, Any]] = None
    connected: bool = True

    @field_validator('hand', 'bonus_inventory', mode='before')
    @classmethod
    def _none_to_empty(cls, v, info):
        if v is None:
            return [] if info.field_name == 'hand' else {}
        return v


class Snapshot(WireModel):
    """Authoritative session state as delivered by the server."""
    model_config = ConfigDict(frozen=True)

    phase: str = PHASE_LOBBY
    player_order: List[str] = []
    current_turn_index: Optional[int] = None
    turn_count: int = 0
    players: Dict[str, ParticipantRecord] = {}
    objective_choices: Dict[str, List[Any]] = {}
    board_state: Optional[Dict[str, Any]] = None
    final_scores: Optional[Any] = None
    winner: Optional[Any] = None
    level: Optional[int] = None
    paused: bool = False
    invite_code: Optional[str] = None

    @field_validator('player_order', 'players', 'objective_choices', mode='before')
    @classmethod
    def _none_to_empty(cls, v, info):
        if v is None:
            return [] if info.field_name == 'player_order' else {}
        return v

    @field_validator('turn_count', mode='before')
    @classmethod
    def _none_to_zero(cls, v):
        return 0 if v is None else v

    @property
    def current_participant_id(self) -> Optional[str]:
        """Participant whose turn it is, or None when the index is out of range."""
        index = self.current_turn_index
        if index is None or not 0 <= index < len(self.player_order):
            return None
        return self.player_order[index]

    def choices_for(self, participant_id: Optional[str]) -> List[Any]:
        """Candidate goal choices offered to a participant (empty if none)."""
        if participant_id is None:
            return []
        return list(self.objective_choices.get(participant_id) or [])


@dataclass
class SessionIdentity:
    session_id: str
    participant_id: str
    display_name: str
    invite_code: Optional[str] = None


@dataclass
class PendingCall:
    """An in-flight call awaiting its acknowledgment or timeout."""
    call_id: int
    operation: str
    future: asyncio.Future
    timer: Optional[asyncio.TimerHandle] = None
    # Runs on a successful acknowledgment before the awaiting caller wakes up
    on_ack: Optional[Callable[[Dict[str, Any]], None]] = None

    @property
    def settled(self) -> bool:
        return self.future.done()


@dataclass
class InitResult:
    """Outcome of MultiplayerClient.init()."""
    participant_id: Optional[str]
    resumed: bool = False
