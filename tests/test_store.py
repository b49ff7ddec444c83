"""Tests für Entity Store, Backends, Transaktionen und ID-Erzeugung."""

import json
from datetime import datetime
from pathlib import Path

import pytest

from scheduling.bookings import BookingManager
from scheduling.clock import FixedClock, RandomIdGenerator, SequentialIdGenerator
from scheduling.exceptions import NotFoundError, StorageError
from scheduling.store import STORAGE_KEYS, EntityStore, JsonDirectoryBackend, MemoryBackend


NOW = datetime(2025, 3, 10, 8, 0)


def _make_store(backend=None, **kwargs) -> EntityStore:
    return EntityStore(
        backend if backend is not None else MemoryBackend(),
        clock=FixedClock(NOW),
        id_generator=SequentialIdGenerator(),
        **kwargs,
    ).load()


def _booking(**overrides) -> dict:
    values = {"room_id": "r3", "title": "Termin",
              "start_datetime": datetime(2025, 3, 10, 11),
              "end_datetime": datetime(2025, 3, 10, 12)}
    values.update(overrides)
    return values


class _FailingBackend(MemoryBackend):
    """Schreibzugriffe schlagen fehl, sobald fail=True gesetzt ist."""

    fail = False

    def set(self, key: str, value: str) -> None:
        if self.fail:
            raise StorageError("Speicher voll")
        super().set(key, value)


# ─── Laden ────────────────────────────────────────────────────────────────────

class TestLoad:
    def test_empty_backend_seeds_defaults(self):
        store = _make_store()
        assert [r.id for r in store.rooms] == ["r1", "r2", "r3"]
        assert [u.id for u in store.users] == ["u1", "u2", "u3"]
        assert [b.id for b in store.bookings] == ["b1", "b2"]
        assert store.bookings[0].start_datetime == datetime(2025, 3, 10, 9)
        assert store.current_user.id == "u1"
        assert store.logs == []

    def test_without_seed_defaults(self):
        store = _make_store(seed_defaults=False)
        assert store.rooms == [] and store.bookings == [] and store.users == []
        assert store.current_user is None

    def test_existing_keys_are_kept(self):
        backend = MemoryBackend({"rm_rooms": "[]"})
        store = _make_store(backend)
        assert store.rooms == []
        assert len(store.users) == 3

    def test_invalid_json_raises_storage_error(self):
        backend = MemoryBackend({"rm_bookings": "{kaputt"})
        with pytest.raises(StorageError):
            _make_store(backend)

    def test_invalid_data_raises_storage_error(self):
        backend = MemoryBackend({"rm_rooms": json.dumps([{"id": "r1", "name": "X",
                                                          "capacity": -1}])})
        with pytest.raises(StorageError):
            _make_store(backend)

    def test_timezone_aware_booking_raises_storage_error(self):
        stored = [{"id": "b9", "room_id": "r1", "title": "UTC",
                   "start_datetime": "2025-03-10T11:00:00Z",
                   "end_datetime": "2025-03-10T12:00:00Z",
                   "created_by_user_id": "u1",
                   "created_at": "2025-03-10T08:00:00",
                   "updated_at": "2025-03-10T08:00:00"}]
        backend = MemoryBackend({"rm_bookings": json.dumps(stored)})
        with pytest.raises(StorageError):
            _make_store(backend)


# ─── Persistenz ───────────────────────────────────────────────────────────────

class TestPersistence:
    def test_persist_writes_all_keys(self):
        store = _make_store()
        store.persist()
        assert set(store.backend.data) == set(STORAGE_KEYS.values())

    def test_roundtrip_through_memory_backend(self):
        store = _make_store()
        BookingManager(store).upsert_booking(_booking())
        reloaded = _make_store(MemoryBackend(store.backend.data))
        assert reloaded.snapshot == store.snapshot

    def test_json_directory_backend(self, tmp_path: Path):
        store = _make_store(JsonDirectoryBackend(tmp_path / "daten"))
        BookingManager(store).upsert_booking(_booking(title="Größe ß"))
        files = sorted(p.name for p in (tmp_path / "daten").iterdir())
        assert files == sorted(f"{k}.json" for k in STORAGE_KEYS.values())
        reloaded = _make_store(JsonDirectoryBackend(tmp_path / "daten"))
        assert reloaded.snapshot.get_booking("b3").title == "Größe ß"
        assert reloaded.logs == store.logs

    def test_missing_file_returns_none(self, tmp_path: Path):
        assert JsonDirectoryBackend(tmp_path).get("rm_rooms") is None

    def test_persisted_enums_as_strings(self):
        store = _make_store()
        store.persist()
        bookings = json.loads(store.backend.data["rm_bookings"])
        assert bookings[1]["status"] == "active"
        assert bookings[1]["type"] == "hybrid"


# ─── Transaktionen ────────────────────────────────────────────────────────────

class TestTransaction:
    def test_exception_restores_state(self):
        store = _make_store()
        with pytest.raises(RuntimeError):
            with store.transaction() as data:
                data.rooms.clear()
                raise RuntimeError("Abbruch")
        assert len(store.rooms) == 3

    def test_nested_transaction_persists_once(self):
        store = _make_store()
        writes = store.backend.writes
        with store.transaction():
            with store.transaction() as data:
                data.rooms.pop()
            assert store.backend.writes == writes
        assert store.backend.writes == writes + len(STORAGE_KEYS)

    def test_storage_error_propagates_and_restores(self):
        backend = _FailingBackend()
        store = _make_store(backend)
        backend.fail = True
        with pytest.raises(StorageError):
            BookingManager(store).upsert_booking(_booking())
        assert [b.id for b in store.bookings] == ["b1", "b2"]
        assert store.logs == []

    def test_snapshot_is_a_copy(self):
        store = _make_store()
        snap = store.snapshot
        snap.rooms.clear()
        assert len(store.rooms) == 3


# ─── Benutzer / IDs ───────────────────────────────────────────────────────────

class TestCurrentUser:
    def test_switch_user(self):
        store = _make_store()
        user = store.set_current_user("u2")
        assert user.name == "Jonas Becker"
        assert json.loads(store.backend.data["rm_current_user"])["id"] == "u2"

    def test_logout(self):
        store = _make_store()
        store.set_current_user(None)
        assert store.current_user is None
        assert store.backend.data["rm_current_user"] == "null"

    def test_unknown_user(self):
        store = _make_store()
        with pytest.raises(NotFoundError):
            store.set_current_user("u99")
        assert store.current_user.id == "u1"


class TestIds:
    def test_collision_regenerates(self):
        store = _make_store()
        assert store.new_id("b", {"b1", "b2"}) == "b3"

    def test_sequential_per_prefix(self):
        gen = SequentialIdGenerator()
        assert [gen("b"), gen("r"), gen("b")] == ["b1", "r1", "b2"]

    def test_random_ids_seeded(self):
        a, b = RandomIdGenerator(seed=7), RandomIdGenerator(seed=7)
        first = a("b")
        assert first == b("b")
        assert first.startswith("b") and len(first) == 10

    def test_fixed_clock_advance(self):
        clock = FixedClock(NOW)
        clock.advance(minutes=90)
        assert clock.now() == datetime(2025, 3, 10, 9, 30)
