"""Entity Store: Sammlungen im Speicher, gespiegelt in einen Key-Value-Speicher.

Jede Sammlung liegt unter einem eigenen Schlüssel (rm_rooms, rm_bookings, ...).
Alle Änderungen laufen über EntityStore.transaction(): globale Schreibsperre,
Sicherungskopie beim Eintritt, Rücksprung bei Ausnahme, Persistenz bei Erfolg.
"""

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError as PydanticValidationError

from config.defaults import default_app_config, default_bookings, default_rooms, default_users
from models.audit import AuditEntry
from models.booking import Booking
from models.room import Room
from models.snapshot import StoreSnapshot
from models.user import User
from scheduling.clock import Clock, IdGenerator, RandomIdGenerator, SystemClock
from scheduling.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)

# Feldname im StoreSnapshot → Schlüssel im Backend
STORAGE_KEYS: dict[str, str] = {
    "users": "rm_users",
    "rooms": "rm_rooms",
    "bookings": "rm_bookings",
    "config": "rm_config",
    "logs": "rm_logs",
    "current_user": "rm_current_user",
}


# ─── Backends ─────────────────────────────────────────────────────────────────

class KeyValueBackend(ABC):
    """Schmale Schnittstelle zum dauerhaften Speicher: JSON-Text pro Schlüssel."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Liefert den gespeicherten Text oder None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Überschreibt den Wert eines Schlüssels."""


class MemoryBackend(KeyValueBackend):
    """Flüchtiger Speicher für Tests."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes += 1
        self.data[key] = value


class JsonDirectoryBackend(KeyValueBackend):
    """Eine JSON-Datei pro Schlüssel in einem Verzeichnis."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise StorageError(f"Lesen fehlgeschlagen: {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Schreiben fehlgeschlagen: {path}: {e}") from e


# ─── Entity Store ─────────────────────────────────────────────────────────────

class EntityStore:
    """Besitzt alle Sammlungen. Lesezugriffe liefern Kopien der Listen."""

    def __init__(
        self,
        backend: Optional[KeyValueBackend] = None,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
        seed_defaults: bool = True,
    ):
        self.backend = backend if backend is not None else MemoryBackend()
        self.clock = clock or SystemClock()
        self.new_id_raw = id_generator or RandomIdGenerator()
        self.seed_defaults = seed_defaults
        self._data = StoreSnapshot()
        self._lock = threading.RLock()
        self._depth = 0

    # ─── Laden / Speichern ───

    def load(self) -> "EntityStore":
        """Liest alle Schlüssel; fehlende werden mit Startdaten belegt."""
        raw: dict = {}
        for field, key in STORAGE_KEYS.items():
            text = self.backend.get(key)
            if text is None:
                continue
            try:
                raw[field] = json.loads(text)
            except json.JSONDecodeError as e:
                raise StorageError(f"Schlüssel {key} enthält kein gültiges JSON: {e}") from e

        if self.seed_defaults:
            now = self.clock.now()
            raw.setdefault("users", [u.model_dump(mode="json") for u in default_users()])
            raw.setdefault("rooms", [r.model_dump(mode="json") for r in default_rooms()])
            raw.setdefault("bookings", [b.model_dump(mode="json") for b in default_bookings(now)])
            raw.setdefault("config", default_app_config().model_dump(mode="json"))
            if "current_user" not in raw and raw["users"]:
                raw["current_user"] = raw["users"][0]

        try:
            self._data = StoreSnapshot.model_validate(raw)
        except PydanticValidationError as e:
            raise StorageError(f"Datenbestand ungültig: {e}") from e

        logger.info(f"Datenbestand geladen: {len(self._data.rooms)} Räume, "
                    f"{len(self._data.bookings)} Buchungen")
        return self

    def persist(self) -> None:
        """Schreibt alle Sammlungen in das Backend."""
        dumped = self._data.model_dump(mode="json")
        try:
            for field, key in STORAGE_KEYS.items():
                self.backend.set(key, json.dumps(dumped[field], ensure_ascii=False, indent=2))
        except StorageError:
            logger.error("Persistenz fehlgeschlagen", exc_info=True)
            raise

    # ─── Transaktion ───

    @contextmanager
    def transaction(self) -> Iterator[StoreSnapshot]:
        """Atomarer Lese-Prüf-Schreib-Abschnitt.

        Eine globale, wiedereintrittsfähige Sperre serialisiert alle
        schreibenden Operationen. Wird im Block eine Ausnahme geworfen,
        wird der Stand vom Eintritt wiederhergestellt und die Ausnahme
        weitergereicht. Nur die äußerste Transaktion persistiert.
        """
        with self._lock:
            backup = self._data.model_copy(deep=True)
            self._depth += 1
            try:
                yield self._data
            except BaseException:
                self._data = backup
                raise
            finally:
                self._depth -= 1
            if self._depth == 0:
                try:
                    self.persist()
                except StorageError:
                    self._data = backup
                    raise

    def new_id(self, prefix: str, taken: set[str]) -> str:
        """Erzeugt eine ID, die in `taken` noch nicht vorkommt."""
        candidate = self.new_id_raw(prefix)
        while candidate in taken:
            logger.warning(f"ID-Kollision erkannt, erzeuge neu: {candidate}")
            candidate = self.new_id_raw(prefix)
        return candidate

    # ─── Lesezugriff ───

    @property
    def snapshot(self) -> StoreSnapshot:
        """Tiefe Kopie des aktuellen Stands."""
        with self._lock:
            return self._data.model_copy(deep=True)

    @property
    def rooms(self) -> list[Room]:
        return list(self._data.rooms)

    @property
    def bookings(self) -> list[Booking]:
        return list(self._data.bookings)

    @property
    def users(self) -> list[User]:
        return list(self._data.users)

    @property
    def logs(self) -> list[AuditEntry]:
        return list(self._data.logs)

    @property
    def config(self):
        return self._data.config

    @property
    def current_user(self) -> Optional[User]:
        return self._data.current_user

    def set_current_user(self, user_id: Optional[str]) -> Optional[User]:
        """Setzt den aktiven Benutzer (None = abgemeldet)."""
        with self.transaction() as data:
            if user_id is None:
                data.current_user = None
                return None
            user = data.get_user(user_id)
            if user is None:
                raise NotFoundError("Benutzer", user_id)
            data.current_user = user
            logger.info(f"Aktiver Benutzer: {user.id} ({user.name})")
            return user
