"""Buchungslogik: Entity Store, Konfliktprüfung, Lifecycle-Manager, Audit."""

from .store import EntityStore, KeyValueBackend, MemoryBackend, JsonDirectoryBackend
from .conflicts import find_conflict, find_all_conflicts
from .audit import AuditLogger
from .bookings import BookingManager
from .rooms import RoomManager
from .policy import PolicyManager
from .result import OperationResult

__all__ = [
    "EntityStore",
    "KeyValueBackend",
    "MemoryBackend",
    "JsonDirectoryBackend",
    "find_conflict",
    "find_all_conflicts",
    "AuditLogger",
    "BookingManager",
    "RoomManager",
    "PolicyManager",
    "OperationResult",
]
