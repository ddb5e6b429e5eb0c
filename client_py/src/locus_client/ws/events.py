"""
Message vocabulary exchanged with the game server.

Operation and event names are the logical names used throughout the client;
``wire_event_name`` maps them to the event names the server listens on.
Request models accept Python field names and dump the server's camelCase keys.
"""

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Set, Type

from pydantic import Field, ValidationError

from ..errors import ProtocolError
from ..models import WireModel


class Operation(str, Enum):
    """Outbound operations."""
    CREATE_GAME = "createGame"
    JOIN_GAME = "joinGame"
    RESUME = "resume"
    START_GAME = "startGame"
    CHOOSE_STARTING_DECK = "chooseStartingDeck"
    CHOOSE_GOAL = "chooseGoal"
    PLAY_MOVE = "playMove"
    PLAY_BONUS = "playBonus"
    PASS_MOVE = "passMove"
    END_TURN = "endTurn"
    UNDO_MOVE = "undoMove"
    TOGGLE_PAUSE = "togglePause"
    START_SHOP_PHASE = "startShopPhase"
    BUY_SHOP_ITEM = "buyShopItem"
    CLAIM_FREE_CARD = "claimFreeCard"
    USE_TIME_BOMB = "useTimeBomb"
    SHOP_READY = "shopReady"
    SEND_TAUNT = "sendTaunt"
    PLAYER_INTERACTION = "playerInteraction"


class InboundEventType(str, Enum):
    """Inbound event types."""
    GAME_STATE = "gameState"
    PLAYER_JOINED = "playerJoined"
    PLAYER_DISCONNECTED = "playerDisconnected"
    PLAYER_RECONNECTED = "playerReconnected"
    MOVE_PLAYED = "movePlayed"
    LEVEL_COMPLETE = "levelComplete"
    NEXT_LEVEL_STARTED = "nextLevelStarted"
    GAME_ENDED = "gameEnded"
    TIME_BOMB_USED = "timeBombUsed"
    OPPONENT_INTERACTION = "opponentInteraction"
    TAUNT = "taunt"
    PAUSE_CHANGED = "pauseChanged"


# Operations the server knows under a different event name
_WIRE_EVENT_NAMES = {
    Operation.RESUME: "reconnect",
}


def wire_event_name(operation: str) -> str:
    """Translate a logical operation name to the server's event name."""
    try:
        operation = Operation(operation)
    except ValueError:
        return operation
    return _WIRE_EVENT_NAMES.get(operation, operation.value)


# Outbound request models
class BaseRequest(WireModel):
    """Base request model."""
    # Fields left out of the wire payload when unset
    omit_if_none: ClassVar[Set[str]] = set()

    def to_wire(self) -> Dict[str, Any]:
        exclude = {name for name in self.omit_if_none if getattr(self, name) is None}
        return self.model_dump(by_alias=True, exclude=exclude)


class CreateGameRequest(BaseRequest):
    display_name: str = Field(..., alias="playerName", min_length=1)
    max_participants: int = Field(4, alias="maxPlayers", ge=2, le=8)
    cards_per_participant: int = Field(8, alias="cardsPerPlayer", ge=4, le=16)


class JoinGameRequest(BaseRequest):
    display_name: str = Field(..., alias="playerName", min_length=1)
    invite_code: str = Field(..., min_length=1)


class ResumeRequest(BaseRequest):
    session_id: str = Field(..., alias="gameId")
    participant_id: str = Field(..., alias="playerId")


class ChooseStartingDeckRequest(BaseRequest):
    deck_type: str


class ChooseGoalRequest(BaseRequest):
    objective_index: int = Field(..., ge=0)


class PlayMoveRequest(BaseRequest):
    """Card placement on the board."""
    omit_if_none: ClassVar[Set[str]] = {"subgrid_id"}

    card_id: str
    zone_name: str
    base_x: int
    base_y: int
    rotation: int = 0
    mirrored: bool = False
    subgrid_id: Optional[str] = None


class PlayBonusRequest(BaseRequest):
    """Bonus charge placement on the board."""
    omit_if_none: ClassVar[Set[str]] = {"subgrid_id"}

    bonus_color: str
    zone_name: str
    base_x: int
    base_y: int
    rotation: int = 0
    subgrid_id: Optional[str] = None


class CardRequest(BaseRequest):
    """Payload for passMove, endTurn and claimFreeCard."""
    card_id: Optional[str] = None


class BuyShopItemRequest(BaseRequest):
    item_id: str
    extra: Dict[str, Any] = {}


class TauntRequest(BaseRequest):
    text: str = Field(..., min_length=1)


# Acknowledgment models
class Ack(WireModel):
    """Generic acknowledgment: a success flag plus operation-specific fields."""
    success: bool = False
    error: Optional[str] = None


class CreateGameAck(Ack):
    session_id: str = Field(..., alias="gameId")
    invite_code: str
    participant_id: str = Field(..., alias="playerId")


class JoinGameAck(Ack):
    session_id: str = Field(..., alias="gameId")
    participant_id: str = Field(..., alias="playerId")
    already_joined: bool = False
    reconnected: bool = False


class ResumeAck(Ack):
    invite_code: Optional[str] = None


# Inbound notification models
class PlayerJoinedEvent(WireModel):
    participant_id: str = Field(..., alias="playerId")
    name: Optional[str] = None


class PlayerDisconnectedEvent(WireModel):
    participant_id: str = Field(..., alias="playerId")
    name: Optional[str] = None


class PlayerReconnectedEvent(WireModel):
    participant_id: str = Field(..., alias="playerId")
    name: Optional[str] = None


class MovePlayedEvent(WireModel):
    """Per-move delta broadcast to every participant."""
    participant_id: Optional[str] = Field(None, alias="playerId")
    player_name: Optional[str] = None
    zone_name: Optional[str] = None
    card_id: Optional[str] = None
    gold_collected: int = 0
    bonuses_collected: List[Any] = []
    cards_played: Optional[int] = None
    objectives_revealed: bool = False


class LevelCompleteEvent(WireModel):
    level_scores: Optional[Any] = None
    level_winner: Optional[Any] = None
    level: Optional[int] = None


class NextLevelStartedEvent(WireModel):
    level: Optional[int] = None


class GameEndedEvent(WireModel):
    final_scores: Optional[Any] = None
    winner: Optional[Any] = None


class TimeBombUsedEvent(WireModel):
    bomber_player_id: Optional[str] = None
    bomber_player_name: Optional[str] = None
    bombed_player_id: Optional[str] = None
    bombed_player_name: Optional[str] = None


class OpponentInteractionEvent(WireModel):
    participant_id: Optional[str] = Field(None, alias="playerId")
    player_name: Optional[str] = None
    type: Optional[str] = None
    mode: Optional[str] = None


class TauntEvent(WireModel):
    participant_id: Optional[str] = Field(None, alias="playerId")
    player_name: Optional[str] = None
    text: str = ""
    timestamp: Optional[float] = None


class PauseChangedEvent(WireModel):
    paused: bool = False
    participant_id: Optional[str] = Field(None, alias="playerId")
    player_name: Optional[str] = None
    remaining_ms: Optional[int] = None


_NOTIFICATION_MODELS: Dict[InboundEventType, Type[WireModel]] = {
    InboundEventType.PLAYER_JOINED: PlayerJoinedEvent,
    InboundEventType.PLAYER_DISCONNECTED: PlayerDisconnectedEvent,
    InboundEventType.PLAYER_RECONNECTED: PlayerReconnectedEvent,
    InboundEventType.MOVE_PLAYED: MovePlayedEvent,
    InboundEventType.LEVEL_COMPLETE: LevelCompleteEvent,
    InboundEventType.NEXT_LEVEL_STARTED: NextLevelStartedEvent,
    InboundEventType.GAME_ENDED: GameEndedEvent,
    InboundEventType.TIME_BOMB_USED: TimeBombUsedEvent,
    InboundEventType.OPPONENT_INTERACTION: OpponentInteractionEvent,
    InboundEventType.TAUNT: TauntEvent,
    InboundEventType.PAUSE_CHANGED: PauseChangedEvent,
}


def parse_notification(event_type: str, data: Any) -> WireModel:
    """
    Parse a raw discrete notification into its event model.

    Args:
        event_type: Inbound event name as received from the transport
        data: Raw payload

    Returns:
        Parsed event model

    Raises:
        ProtocolError: If the event type is unknown or the payload is malformed
    """
    try:
        event_type = InboundEventType(event_type)
    except ValueError:
        raise ProtocolError(f"Invalid event type: {event_type}")

    event_class = _NOTIFICATION_MODELS.get(event_type)
    if not event_class:
        raise ProtocolError(f"No model for event type: {event_type.value}")

    try:
        return event_class.model_validate(data or {})
    except ValidationError as e:
        raise ProtocolError(f"Invalid {event_type.value} payload: {e}")


def parse_ack(model: Type[Ack], data: Any) -> Ack:
    """Parse an acknowledgment body into the given ack model."""
    if not isinstance(data, dict):
        raise ProtocolError(f"Acknowledgment must be an object, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(f"Invalid acknowledgment: {e}")
