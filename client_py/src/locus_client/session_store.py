"""
Session identity persistence.

The identity (session id, participant id, display name, invite code) is kept
under fixed keys in a pluggable key/value storage so a client can resume its
seat after the transport drops or the process restarts.
"""

import logging
import os
from typing import Dict, Optional, Protocol

import orjson

from .constants import (
    SESSION_STORAGE_KEYS, STORAGE_KEY_SESSION_ID, STORAGE_KEY_PARTICIPANT_ID,
    STORAGE_KEY_DISPLAY_NAME, STORAGE_KEY_INVITE_CODE, DEFAULT_DISPLAY_NAME
)
from .models import SessionIdentity

logger = logging.getLogger(__name__)


class SessionStorage(Protocol):
    """Key/value port for persisted session data."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemorySessionStorage:
    """Dictionary-backed storage, lives as long as the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileSessionStorage:
    """Storage kept in a single JSON document on disk."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "rb") as f:
            raw = f.read()
        if not raw:
            return {}
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning(f"Session file {self.path} is corrupt, ignoring it")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "wb") as f:
            f.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class SessionContinuityStore:
    """Reads, writes and clears the persisted SessionIdentity."""

    def __init__(self, storage: SessionStorage):
        self.storage = storage

    def load(self) -> Optional[SessionIdentity]:
        """Return the persisted identity, or None if there is no usable one."""
        session_id = self.storage.get(STORAGE_KEY_SESSION_ID)
        participant_id = self.storage.get(STORAGE_KEY_PARTICIPANT_ID)
        if not session_id or not participant_id:
            return None
        return SessionIdentity(
            session_id=session_id,
            participant_id=participant_id,
            display_name=self.storage.get(STORAGE_KEY_DISPLAY_NAME) or DEFAULT_DISPLAY_NAME,
            invite_code=self.storage.get(STORAGE_KEY_INVITE_CODE) or None,
        )

    def save(self, identity: SessionIdentity) -> None:
        self.storage.set(STORAGE_KEY_SESSION_ID, identity.session_id)
        self.storage.set(STORAGE_KEY_PARTICIPANT_ID, identity.participant_id)
        self.storage.set(STORAGE_KEY_DISPLAY_NAME, identity.display_name)
        if identity.invite_code:
            self.storage.set(STORAGE_KEY_INVITE_CODE, identity.invite_code)
        else:
            self.storage.remove(STORAGE_KEY_INVITE_CODE)
        logger.debug(f"Persisted session {identity.session_id} for {identity.participant_id}")

    def clear(self) -> None:
        for key in SESSION_STORAGE_KEYS:
            self.storage.remove(key)


def create_storage(path: Optional[str] = None) -> SessionStorage:
    """File storage when a path is configured, memory storage otherwise."""
    if path:
        return FileSessionStorage(path)
    return MemorySessionStorage()
