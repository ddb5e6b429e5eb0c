#!/usr/bin/env python3
"""Console observer: connects to a game server and logs every session event"""

import asyncio
import functools
import logging
import os

from .client import MultiplayerClient
from .config import ClientConfig, config_from_env
from .dispatch import ClientEvent

logger = logging.getLogger("locus_client.observer")


def _log_event(event: ClientEvent, *args):
    if event == ClientEvent.GAME_STATE_CHANGED:
        snapshot = args[0]
        logger.info(f"{event.value}: phase={snapshot.phase} turn={snapshot.turn_count}")
    else:
        logger.info(f"{event.value}: {args}")


async def observe(config: ClientConfig, display_name: str = "", invite_code: str = ""):
    client = MultiplayerClient(config)
    for event in ClientEvent:
        client.on(event, functools.partial(_log_event, event))

    result = await client.init()
    if result.resumed:
        logger.info(f"Resumed game {client.session_id} as {client.participant_id}")
    elif display_name and invite_code:
        await client.join_game(display_name, invite_code)
    elif display_name:
        ack = await client.create_game(display_name)
        print(f"🎲 Game created, invite code: {ack.invite_code}")

    try:
        await asyncio.Event().wait()
    finally:
        # Keep the persisted identity so the next run resumes
        await client.connection.close()


def log_level() -> str:
    return os.getenv("LOCUS_LOG_LEVEL", "info").upper()


def main():
    logging.basicConfig(level=log_level())
    config = config_from_env()
    display_name = os.getenv("LOCUS_NAME", "")
    invite_code = os.getenv("LOCUS_INVITE_CODE", "")

    print(f"🔌 Connecting to {config.server_url}")
    try:
        asyncio.run(observe(config, display_name, invite_code))
    except KeyboardInterrupt:
        print("👋 Observer stopped")


if __name__ == "__main__":
    main()
