"""
Tests for session identity persistence.
"""

from locus_client.constants import SESSION_STORAGE_KEYS
from locus_client.models import SessionIdentity
from locus_client.session_store import (
    FileSessionStorage, MemorySessionStorage, SessionContinuityStore, create_storage
)


def test_save_and_load_identity():
    store = SessionContinuityStore(MemorySessionStorage())
    store.save(SessionIdentity("g1", "p1", "Alice", "ABCDEF"))

    assert store.load() == SessionIdentity("g1", "p1", "Alice", "ABCDEF")


def test_load_requires_session_and_participant():
    storage = MemorySessionStorage({"locus_gameId": "g1"})
    assert SessionContinuityStore(storage).load() is None


def test_missing_display_name_falls_back():
    storage = MemorySessionStorage({"locus_gameId": "g1", "locus_playerId": "p1"})
    identity = SessionContinuityStore(storage).load()

    assert identity.display_name == "Speler"
    assert identity.invite_code is None


def test_clear_removes_every_key():
    storage = MemorySessionStorage()
    store = SessionContinuityStore(storage)
    store.save(SessionIdentity("g1", "p1", "Alice", "ABCDEF"))

    store.clear()

    assert all(storage.get(key) is None for key in SESSION_STORAGE_KEYS)
    assert store.load() is None


def test_saving_without_invite_code_drops_stale_code():
    storage = MemorySessionStorage()
    store = SessionContinuityStore(storage)
    store.save(SessionIdentity("g1", "p1", "Alice", "ABCDEF"))
    store.save(SessionIdentity("g2", "p1", "Alice"))

    assert storage.get("locus_inviteCode") is None


def test_file_storage_survives_new_instance(tmp_path):
    path = str(tmp_path / "state" / "session.json")
    SessionContinuityStore(FileSessionStorage(path)).save(SessionIdentity("g1", "p1", "Alice"))

    identity = SessionContinuityStore(FileSessionStorage(path)).load()
    assert identity.session_id == "g1"
    assert identity.participant_id == "p1"


def test_file_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_bytes(b"{not json")

    storage = FileSessionStorage(str(path))
    assert storage.get("locus_gameId") is None
    storage.set("locus_gameId", "g1")
    assert storage.get("locus_gameId") == "g1"


def test_file_storage_remove(tmp_path):
    storage = FileSessionStorage(str(tmp_path / "session.json"))
    storage.set("locus_gameId", "g1")
    storage.remove("locus_gameId")
    storage.remove("locus_gameId")

    assert storage.get("locus_gameId") is None


def test_create_storage_selects_backend(tmp_path):
    assert isinstance(create_storage(None), MemorySessionStorage)
    assert isinstance(create_storage(str(tmp_path / "s.json")), FileSessionStorage)
