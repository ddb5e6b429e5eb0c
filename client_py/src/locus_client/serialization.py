"""
Read-only views over the current snapshot for consumers.
"""

from typing import Any, Dict, List, Optional

from .constants import PHASE_PLAYING
from .models import ParticipantRecord, Snapshot


def _pile_size(pile: Any) -> int:
    # Own piles arrive as lists, opponents' as counts
    if isinstance(pile, list):
        return len(pile)
    if isinstance(pile, (int, float)):
        return int(pile)
    return 0


def is_my_turn(state: Optional[Snapshot], participant_id: Optional[str]) -> bool:
    if state is None or state.phase != PHASE_PLAYING:
        return False
    return participant_id is not None and state.current_participant_id == participant_id


def get_current_player(state: Optional[Snapshot]) -> Optional[ParticipantRecord]:
    if state is None:
        return None
    pid = state.current_participant_id
    return state.players.get(pid) if pid else None


def get_my_player(state: Optional[Snapshot], participant_id: Optional[str]) -> Optional[ParticipantRecord]:
    if state is None or participant_id is None:
        return None
    return state.players.get(participant_id)


def get_my_hand(state: Optional[Snapshot], participant_id: Optional[str]) -> List[Any]:
    player = get_my_player(state, participant_id)
    return list(player.hand) if player else []


def serialize_scoreboard_entry(
    state: Snapshot,
    participant_id: str,
    viewer_id: Optional[str] = None
) -> Dict[str, Any]:
    """Serialize one participant for the scoreboard."""
    player = state.players.get(participant_id) or ParticipantRecord()
    return {
        "id": participant_id,
        "name": player.name,
        "score": player.score or 0,
        "score_breakdown": player.score_breakdown,
        "is_current_turn": state.current_participant_id == participant_id,
        "is_me": participant_id == viewer_id,
        "cards_left": _pile_size(player.draw_pile),
        "hand_size": len(player.hand),
        "discard_pile_size": _pile_size(player.discard_pile),
        "bonus_inventory": dict(player.bonus_inventory),
        "connected": player.connected,
    }


def get_scoreboard(state: Optional[Snapshot], viewer_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """All participants in turn order, with scores and pile sizes."""
    if state is None:
        return []
    return [
        serialize_scoreboard_entry(state, pid, viewer_id)
        for pid in state.player_order
    ]


def get_board_state(state: Optional[Snapshot]) -> Optional[Dict[str, Any]]:
    if state is None:
        return None
    return state.board_state
