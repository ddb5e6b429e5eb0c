"""
Multiplayer session client.

Wires the transport, connection lifecycle, call correlation, snapshot diffing
and notification routing together and exposes the game operations.

Usage:
    client = MultiplayerClient(create_config(server_url="http://localhost:3000"))
    client.on(ClientEvent.TURN_CHANGED, lambda pid, count: ...)
    await client.init()
    await client.create_game("Alice", max_participants=4)
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Type, Union

from .config import ClientConfig, default_config
from .diff import SnapshotTracker
from .dispatch import ClientEvent, EventRegistry, Handler
from .errors import ClientError, NotConnected, SessionResumeFailure
from .connection import ConnectionManager
from .models import InitResult, ParticipantRecord, SessionIdentity, Snapshot
from .notifications import NotificationRouter
from .rpc import RpcChannel
from .serialization import (
    is_my_turn, get_current_player, get_my_player, get_my_hand,
    get_scoreboard, get_board_state
)
from .session_store import SessionContinuityStore, SessionStorage, create_storage
from .ws.events import (
    Ack, CreateGameAck, JoinGameAck, ResumeAck, Operation, parse_ack,
    CreateGameRequest, JoinGameRequest, ResumeRequest, ChooseStartingDeckRequest,
    ChooseGoalRequest, PlayMoveRequest, PlayBonusRequest, CardRequest,
    BuyShopItemRequest, TauntRequest
)
from .ws.transport import Transport, TransportFactory, socketio_transport_factory

logger = logging.getLogger(__name__)


class MultiplayerClient:
    """Client-side view of one multiplayer game session."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        storage: Optional[SessionStorage] = None,
        transport_factory: Optional[TransportFactory] = None,
    ):
        self.config = config or default_config
        self.registry = EventRegistry()
        if storage is None:
            storage = create_storage(self.config.storage_path)
        self.store = SessionContinuityStore(storage)
        self._transport_factory = transport_factory or socketio_transport_factory

        self.transport: Optional[Transport] = None
        self.connection: Optional[ConnectionManager] = None
        self.rpc: Optional[RpcChannel] = None
        self.identity: Optional[SessionIdentity] = None
        self._resuming: Optional[SessionIdentity] = None

        self.tracker = SnapshotTracker(self.registry, self._viewer_id)
        self.router = NotificationRouter(self.registry, self.tracker)

    # Event registration

    def on(self, event: Union[ClientEvent, str], handler: Handler) -> Optional[Handler]:
        return self.registry.on(event, handler)

    def off(self, event: Union[ClientEvent, str]) -> Optional[Handler]:
        return self.registry.off(event)

    # Session properties

    @property
    def connected(self) -> bool:
        return self.connection is not None and self.connection.connected

    @property
    def participant_id(self) -> Optional[str]:
        return self.identity.participant_id if self.identity else None

    @property
    def session_id(self) -> Optional[str]:
        return self.identity.session_id if self.identity else None

    @property
    def invite_code(self) -> Optional[str]:
        return self.identity.invite_code if self.identity else None

    @property
    def display_name(self) -> Optional[str]:
        return self.identity.display_name if self.identity else None

    @property
    def game_state(self) -> Optional[Snapshot]:
        return self.tracker.current

    def _viewer_id(self) -> Optional[str]:
        # Includes a resume still in flight
        identity = self.identity or self._resuming
        return identity.participant_id if identity else None

    # Lifecycle

    async def init(self) -> InitResult:
        """
        Connect to the server and resume a persisted session if there is one.

        Returns:
            InitResult with ``resumed=True`` when a persisted session was resumed

        Raises:
            ConnectionTimeout: If the server does not answer in time
            ConnectionFailed: If the transport refuses the connection
        """
        if self.connected:
            logger.info("Already connected, init skipped")
            return InitResult(participant_id=self.participant_id, resumed=False)
        if self.connection is not None:
            await self.connection.close()

        try:
            self.transport = self._transport_factory(self.config)
            self.connection = ConnectionManager(
                self.transport,
                self.registry,
                connect_timeout=self.config.connect_timeout,
                on_reconnected=self._resume_after_reconnect,
            )
            self.rpc = RpcChannel(
                self.transport,
                self.connection.is_connected,
                request_timeout=self.config.request_timeout,
            )
            self.router.bind(self.transport)
            await self.connection.establish()
        except ClientError as e:
            logger.error(f"Init failed: {e.message}")
            self.registry.emit(ClientEvent.ERROR, e)
            raise

        saved = self.store.load()
        if saved is not None:
            try:
                await self._resume(saved)
            except SessionResumeFailure as e:
                logger.warning(f"Auto-resume failed: {e.message}")
                self._forget_session()
            else:
                logger.info(f"Auto-resume succeeded for game {saved.session_id}")
                return InitResult(participant_id=saved.participant_id, resumed=True)

        return InitResult(participant_id=None, resumed=False)

    async def disconnect(self) -> None:
        """Close the connection and forget the session, including persisted identity."""
        try:
            if self.connection is not None:
                await self.connection.close()
        finally:
            self.tracker.reset()
            self._forget_session()

    async def _resume(self, identity: SessionIdentity) -> None:
        request = ResumeRequest(session_id=identity.session_id, participant_id=identity.participant_id)

        def adopt(body: Dict[str, Any]) -> None:
            ack = parse_ack(ResumeAck, body)
            self._adopt_session(SessionIdentity(
                session_id=identity.session_id,
                participant_id=identity.participant_id,
                display_name=identity.display_name,
                invite_code=ack.invite_code or identity.invite_code,
            ))

        self._resuming = identity
        try:
            if self.rpc is None:
                raise NotConnected(Operation.RESUME.value)
            await self.rpc.call(Operation.RESUME.value, request.to_wire(), on_ack=adopt)
        except ClientError as e:
            raise SessionResumeFailure(identity.session_id, e.message)
        finally:
            self._resuming = None

    async def _resume_after_reconnect(self) -> None:
        identity = self.identity
        if identity is None:
            return
        try:
            await self._resume(identity)
        except SessionResumeFailure as e:
            logger.error(f"Rejoining game after reconnect failed: {e.message}")
            self._forget_session()
        else:
            logger.info(f"Rejoined game {identity.session_id} after reconnect")

    def _adopt_session(self, identity: SessionIdentity) -> None:
        self.identity = identity
        self.store.save(identity)

    def _forget_session(self) -> None:
        self.identity = None
        self.store.clear()

    # Calls

    async def call(
        self,
        operation: Union[Operation, str],
        payload: Optional[Dict[str, Any]] = None,
        on_ack: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> Dict[str, Any]:
        """
        Issue a call and return the acknowledgment body.

        Errors propagate to the caller and are also dispatched to the error slot.
        """
        operation = operation.value if isinstance(operation, Operation) else operation
        try:
            if self.rpc is None:
                raise NotConnected(operation)
            return await self.rpc.call(operation, payload, on_ack=on_ack)
        except ClientError as e:
            logger.error(f"{operation} failed: {e.message}")
            self.registry.emit(ClientEvent.ERROR, e)
            raise

    async def _call_parsed(
        self,
        operation: Operation,
        payload: Dict[str, Any],
        model: Type[Ack],
        on_parsed: Optional[Callable[[Ack], None]] = None,
    ) -> Ack:
        acks: List[Ack] = []

        def accept(body: Dict[str, Any]) -> None:
            acks.append(parse_ack(model, body))
            if on_parsed is not None:
                on_parsed(acks[0])

        await self.call(operation, payload, on_ack=accept)
        return acks[0]

    async def create_game(
        self,
        display_name: str,
        max_participants: Optional[int] = None,
        cards_per_participant: Optional[int] = None
    ) -> CreateGameAck:
        """Create a new game and take the first seat."""
        request = CreateGameRequest(
            display_name=display_name,
            max_participants=max_participants or self.config.max_participants,
            cards_per_participant=cards_per_participant or self.config.cards_per_participant,
        )
        ack = await self._call_parsed(
            Operation.CREATE_GAME, request.to_wire(), CreateGameAck,
            on_parsed=lambda ack: self._adopt_session(SessionIdentity(
                session_id=ack.session_id,
                participant_id=ack.participant_id,
                display_name=display_name,
                invite_code=ack.invite_code,
            )),
        )
        logger.info(f"Game created: {ack.session_id} (code: {ack.invite_code})")
        return ack

    async def join_game(self, display_name: str, invite_code: str) -> JoinGameAck:
        """Join an existing game through its invite code."""
        request = JoinGameRequest(display_name=display_name, invite_code=invite_code)
        ack = await self._call_parsed(
            Operation.JOIN_GAME, request.to_wire(), JoinGameAck,
            on_parsed=lambda ack: self._adopt_session(SessionIdentity(
                session_id=ack.session_id,
                participant_id=ack.participant_id,
                display_name=display_name,
                invite_code=invite_code,
            )),
        )
        logger.info(f"Joined game: {ack.session_id}")
        return ack

    async def start_game(self) -> Dict[str, Any]:
        return await self.call(Operation.START_GAME, {})

    async def choose_starting_deck(self, deck_type: str) -> Dict[str, Any]:
        return await self.call(
            Operation.CHOOSE_STARTING_DECK,
            ChooseStartingDeckRequest(deck_type=deck_type).to_wire()
        )

    async def choose_goal(self, objective_index: int) -> Dict[str, Any]:
        return await self.call(
            Operation.CHOOSE_GOAL,
            ChooseGoalRequest(objective_index=objective_index).to_wire()
        )

    async def play_move(
        self,
        card_id: str,
        zone_name: str,
        base_x: int,
        base_y: int,
        rotation: int = 0,
        mirrored: bool = False,
        subgrid_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Place a card on the board."""
        request = PlayMoveRequest(
            card_id=card_id, zone_name=zone_name, base_x=base_x, base_y=base_y,
            rotation=rotation, mirrored=mirrored, subgrid_id=subgrid_id,
        )
        return await self.call(Operation.PLAY_MOVE, request.to_wire())

    async def play_bonus(
        self,
        bonus_color: str,
        zone_name: str,
        base_x: int,
        base_y: int,
        subgrid_id: Optional[str] = None,
        rotation: int = 0
    ) -> Dict[str, Any]:
        request = PlayBonusRequest(
            bonus_color=bonus_color, zone_name=zone_name, base_x=base_x, base_y=base_y,
            rotation=rotation, subgrid_id=subgrid_id,
        )
        return await self.call(Operation.PLAY_BONUS, request.to_wire())

    async def pass_move(self, card_id: Optional[str] = None) -> Dict[str, Any]:
        """Skip the turn, discarding ``card_id``."""
        return await self.call(Operation.PASS_MOVE, CardRequest(card_id=card_id).to_wire())

    async def end_turn(self, card_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.call(Operation.END_TURN, CardRequest(card_id=card_id).to_wire())

    async def undo_move(self) -> Dict[str, Any]:
        return await self.call(Operation.UNDO_MOVE, {})

    async def toggle_pause(self) -> Dict[str, Any]:
        return await self.call(Operation.TOGGLE_PAUSE, {})

    async def start_shop_phase(self) -> Dict[str, Any]:
        return await self.call(Operation.START_SHOP_PHASE, {})

    async def buy_shop_item(self, item_id: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        request = BuyShopItemRequest(item_id=item_id, extra=extra or {})
        return await self.call(Operation.BUY_SHOP_ITEM, request.to_wire())

    async def claim_free_card(self, card_id: str) -> Dict[str, Any]:
        """Claim one of the free cards offered after an unlock."""
        return await self.call(Operation.CLAIM_FREE_CARD, CardRequest(card_id=card_id).to_wire())

    async def use_time_bomb(self) -> Dict[str, Any]:
        return await self.call(Operation.USE_TIME_BOMB, {})

    async def set_shop_ready(self) -> Dict[str, Any]:
        return await self.call(Operation.SHOP_READY, {})

    async def send_taunt(self, text: str) -> Dict[str, Any]:
        return await self.call(Operation.SEND_TAUNT, TauntRequest(text=text).to_wire())

    async def send_interaction(self, data: Optional[Dict[str, Any]] = None) -> bool:
        """Broadcast a live interaction without waiting for an acknowledgment."""
        if self.rpc is None:
            return False
        return await self.rpc.notify(Operation.PLAYER_INTERACTION.value, data or {})

    # State views

    def is_my_turn(self) -> bool:
        return is_my_turn(self.game_state, self.participant_id)

    def get_current_player(self) -> Optional[ParticipantRecord]:
        return get_current_player(self.game_state)

    def get_my_player(self) -> Optional[ParticipantRecord]:
        return get_my_player(self.game_state, self.participant_id)

    def get_my_hand(self) -> List[Any]:
        return get_my_hand(self.game_state, self.participant_id)

    def get_scoreboard(self) -> List[Dict[str, Any]]:
        return get_scoreboard(self.game_state, self.participant_id)

    def get_board_state(self) -> Optional[Dict[str, Any]]:
        return get_board_state(self.game_state)
