"""
Snapshot diffing: derives phase and turn transitions from full snapshots.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from .constants import PHASE_CHOOSING_GOALS, PHASE_PLAYING, PHASE_ENDED
from .dispatch import ClientEvent, EventRegistry
from .errors import ProtocolError
from .models import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """One event to dispatch, with its arguments."""
    event: ClientEvent
    args: Tuple[Any, ...] = ()


def _phase_entry(snapshot: Snapshot, participant_id: Optional[str]) -> Optional[Transition]:
    if snapshot.phase == PHASE_CHOOSING_GOALS:
        return Transition(ClientEvent.GOAL_PHASE, (snapshot.choices_for(participant_id),))
    if snapshot.phase == PHASE_PLAYING:
        return Transition(ClientEvent.GAME_STARTED, (snapshot,))
    if snapshot.phase == PHASE_ENDED:
        return Transition(ClientEvent.GAME_ENDED, (snapshot.final_scores, snapshot.winner))
    # levelComplete and shopping arrive as discrete notifications
    return None


def compute_transitions(
    previous: Optional[Snapshot],
    snapshot: Snapshot,
    participant_id: Optional[str] = None
) -> List[Transition]:
    """
    Compute the events implied by moving from ``previous`` to ``snapshot``.

    Args:
        previous: Snapshot retained from the last delivery, None for the first
        snapshot: Newly delivered snapshot
        participant_id: This client's participant id, used to pick goal choices

    Returns:
        Transitions in dispatch order; the first is always GAME_STATE_CHANGED
    """
    transitions = [Transition(ClientEvent.GAME_STATE_CHANGED, (snapshot, previous))]

    previous_phase = previous.phase if previous is not None else None
    if snapshot.phase != previous_phase:
        entry = _phase_entry(snapshot, participant_id)
        if entry is not None:
            transitions.append(entry)

    if previous is not None and snapshot.phase == PHASE_PLAYING:
        turn_moved = (
            previous.current_turn_index != snapshot.current_turn_index
            or previous.turn_count != snapshot.turn_count
        )
        if turn_moved:
            transitions.append(Transition(
                ClientEvent.TURN_CHANGED,
                (snapshot.current_participant_id, snapshot.turn_count)
            ))

    return transitions


class SnapshotTracker:
    """Keeps the current snapshot and dispatches the transitions of each delivery."""

    def __init__(self, registry: EventRegistry, participant_id: Callable[[], Optional[str]]):
        self.registry = registry
        self._participant_id = participant_id
        self._current: Optional[Snapshot] = None

    @property
    def current(self) -> Optional[Snapshot]:
        return self._current

    @property
    def phase(self) -> Optional[str]:
        return self._current.phase if self._current is not None else None

    def apply(self, data: Union[Snapshot, Dict[str, Any]]) -> Snapshot:
        """
        Accept a delivered snapshot and dispatch what changed.

        Raises:
            ProtocolError: If the payload is not a valid snapshot
        """
        if isinstance(data, Snapshot):
            snapshot = data
        else:
            try:
                snapshot = Snapshot.model_validate(data)
            except ValidationError as e:
                raise ProtocolError(f"Invalid snapshot: {e}")

        previous = self._current
        transitions = compute_transitions(previous, snapshot, self._participant_id())
        self._current = snapshot

        if previous is None or previous.phase != snapshot.phase:
            logger.info(f"Phase {previous.phase if previous else None} -> {snapshot.phase}")

        for transition in transitions:
            self.registry.emit(transition.event, *transition.args)
        return snapshot

    def reset(self) -> None:
        self._current = None
