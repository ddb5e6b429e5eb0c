"""Client constants: phases, storage keys and defaults"""

from typing import List

# Session phases as reported by the server
PHASE_LOBBY = 'lobby'
PHASE_CHOOSING_GOALS = 'choosingGoals'
PHASE_PLAYING = 'playing'
PHASE_LEVEL_COMPLETE = 'levelComplete'
PHASE_SHOPPING = 'shopping'
PHASE_ENDED = 'ended'

ALL_PHASES: List[str] = [
    PHASE_LOBBY,
    PHASE_CHOOSING_GOALS,
    PHASE_PLAYING,
    PHASE_LEVEL_COMPLETE,
    PHASE_SHOPPING,
    PHASE_ENDED,
]

# Keys under which the session identity is persisted
STORAGE_KEY_SESSION_ID = 'locus_gameId'
STORAGE_KEY_PARTICIPANT_ID = 'locus_playerId'
STORAGE_KEY_DISPLAY_NAME = 'locus_userName'
STORAGE_KEY_INVITE_CODE = 'locus_inviteCode'

SESSION_STORAGE_KEYS: List[str] = [
    STORAGE_KEY_SESSION_ID,
    STORAGE_KEY_PARTICIPANT_ID,
    STORAGE_KEY_DISPLAY_NAME,
    STORAGE_KEY_INVITE_CODE,
]

# Timeouts in seconds
CONNECT_TIMEOUT = 8.0
REQUEST_TIMEOUT = 10.0

DEFAULT_SERVER_URL = 'http://localhost:3000'
DEFAULT_DISPLAY_NAME = 'Speler'
DEFAULT_MAX_PARTICIPANTS = 4
DEFAULT_CARDS_PER_PARTICIPANT = 8
UNKNOWN_ERROR_MESSAGE = 'Unknown error'
