"""
Locus multiplayer session client.
"""

from .client import MultiplayerClient
from .config import ClientConfig, create_config, config_from_env
from .dispatch import ClientEvent, EventRegistry
from .errors import (
    ClientError, ConnectionTimeout, ConnectionFailed, NotConnected,
    RequestTimeout, ServerRejected, SessionResumeFailure, ProtocolError
)
from .models import Snapshot, SessionIdentity, InitResult

__version__ = "1.0.0"

__all__ = [
    "MultiplayerClient",
    "ClientConfig",
    "create_config",
    "config_from_env",
    "ClientEvent",
    "EventRegistry",
    "ClientError",
    "ConnectionTimeout",
    "ConnectionFailed",
    "NotConnected",
    "RequestTimeout",
    "ServerRejected",
    "SessionResumeFailure",
    "ProtocolError",
    "Snapshot",
    "SessionIdentity",
    "InitResult",
]
