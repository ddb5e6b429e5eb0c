"""
Client configuration and validation.
"""

import os
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import (
    CONNECT_TIMEOUT, REQUEST_TIMEOUT, DEFAULT_SERVER_URL,
    DEFAULT_MAX_PARTICIPANTS, DEFAULT_CARDS_PER_PARTICIPANT
)


class ClientConfig(BaseModel):
    """Configuration for the multiplayer session client."""

    server_url: str = Field(
        default=DEFAULT_SERVER_URL,
        description="Base URL of the game server"
    )
    connect_timeout: float = Field(
        default=CONNECT_TIMEOUT,
        gt=0,
        le=120,
        description="Seconds to wait for the initial connect acknowledgment"
    )
    request_timeout: float = Field(
        default=REQUEST_TIMEOUT,
        gt=0,
        le=300,
        description="Seconds to wait for a call acknowledgment"
    )
    reconnection: bool = Field(
        default=True,
        description="Whether the transport reconnects automatically"
    )
    reconnection_attempts: int = Field(
        default=10,
        ge=0,
        description="Reconnect attempts before giving up (0 = unlimited)"
    )
    reconnection_delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial delay in seconds between reconnect attempts"
    )
    transports: List[str] = Field(
        default_factory=lambda: ["websocket", "polling"],
        description="Transport upgrade order handed to the Socket.IO client"
    )
    storage_path: Optional[str] = Field(
        default=None,
        description="File used to persist the session identity (None = memory only)"
    )
    max_participants: int = Field(
        default=DEFAULT_MAX_PARTICIPANTS,
        ge=2,
        le=8,
        description="Default seat count when creating a game"
    )
    cards_per_participant: int = Field(
        default=DEFAULT_CARDS_PER_PARTICIPANT,
        ge=4,
        le=16,
        description="Default deck size per participant when creating a game"
    )

    @field_validator('server_url')
    @classmethod
    def validate_server_url(cls, v):
        """Require an http(s) or ws(s) URL without trailing slash."""
        if not v.startswith(('http://', 'https://', 'ws://', 'wss://')):
            raise ValueError(f'server_url must be an http(s) or ws(s) URL, got {v!r}')
        return v.rstrip('/')


# Default configuration instance
default_config = ClientConfig()


def create_config(**overrides) -> ClientConfig:
    """Create a ClientConfig with optional overrides."""
    config_dict = default_config.model_dump()
    config_dict.update(overrides)
    return ClientConfig(**config_dict)


def config_from_env(**overrides) -> ClientConfig:
    """Build a config from LOCUS_* environment variables, then apply overrides."""
    env = {}
    if os.getenv("LOCUS_SERVER_URL"):
        env["server_url"] = os.getenv("LOCUS_SERVER_URL")
    if os.getenv("LOCUS_CONNECT_TIMEOUT"):
        env["connect_timeout"] = float(os.getenv("LOCUS_CONNECT_TIMEOUT"))
    if os.getenv("LOCUS_REQUEST_TIMEOUT"):
        env["request_timeout"] = float(os.getenv("LOCUS_REQUEST_TIMEOUT"))
    if os.getenv("LOCUS_STORAGE_PATH"):
        env["storage_path"] = os.getenv("LOCUS_STORAGE_PATH")
    if os.getenv("LOCUS_RECONNECTION"):
        env["reconnection"] = os.getenv("LOCUS_RECONNECTION").lower() == "true"
    env.update(overrides)
    return create_config(**env)
