"""Room Lifecycle Manager: Anlegen, Bearbeiten und Löschen von Räumen.

Räume sind voneinander unabhängig, eine Konfliktprüfung gibt es hier nicht.
Löschen ist nur erlaubt, solange keine aktive zukünftige Buchung auf den
Raum zeigt; vergangene und stornierte Buchungen behalten ihre (dann
verwaiste) room_id.
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from models.audit import AuditAction
from models.room import Room, RoomDraft
from scheduling.audit import AuditLogger
from scheduling.exceptions import (
    DeletionGuardError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from scheduling.result import as_result
from scheduling.store import EntityStore
from scheduling.validation import validate_room_request

logger = logging.getLogger(__name__)


def _build_room(values: dict) -> Room:
    try:
        return Room.model_validate(values)
    except PydanticValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ValidationError(f"Ungültiger Raum: {messages}") from e


class RoomManager:
    """Raum-Lebenszyklus auf einem EntityStore."""

    def __init__(self, store: EntityStore, audit: Optional[AuditLogger] = None):
        self.store = store
        self.audit = audit or AuditLogger(store)

    @as_result
    def upsert_room(self, draft: Union[RoomDraft, dict]) -> str:
        """Legt einen Raum an (immer aktiv) oder übernimmt Änderungen."""
        if isinstance(draft, dict):
            try:
                draft = RoomDraft.model_validate(draft)
            except PydanticValidationError as e:
                raise ValidationError(f"Ungültige Eingabe: {e.error_count()} Fehler") from e

        with self.store.transaction() as data:
            actor = data.current_user
            if actor is None:
                raise UnauthenticatedError()
            validate_room_request(draft, creating=not draft.id)

            if draft.id:
                existing = data.get_room(draft.id)
                if existing is None:
                    raise NotFoundError("Raum", draft.id)
                updated = _build_room({**existing.model_dump(), **draft.changes()})
                data.rooms[data.rooms.index(existing)] = updated
                self.audit.record(data, AuditAction.ROOM_EDITED, actor.id,
                                  f"Raum {updated.name} bearbeitet")
                logger.info(f"Raum {updated.id} bearbeitet von {actor.id}")
                return updated.id

            room = _build_room({
                **draft.changes(),
                "name": draft.name.strip(),
                "id": self.store.new_id("r", {r.id for r in data.rooms}),
                "is_active": True,
            })
            data.rooms.append(room)
            self.audit.record(data, AuditAction.ROOM_CREATED, actor.id,
                              f"Neuer Raum angelegt: {room.name}")
            logger.info(f"Raum {room.id} angelegt: {room.name} ({room.capacity} Plätze)")
            return room.id

    @as_result
    def delete_room(self, room_id: str) -> str:
        """Entfernt einen Raum ohne aktive zukünftige Buchungen."""
        with self.store.transaction() as data:
            actor = data.current_user
            if actor is None:
                raise UnauthenticatedError()
            room = data.get_room(room_id)
            if room is None:
                raise NotFoundError("Raum", room_id)

            pending = data.upcoming_active(room_id, self.store.clock.now())
            if pending:
                raise DeletionGuardError(room_id, len(pending))

            data.rooms.remove(room)
            self.audit.record(data, AuditAction.ROOM_DELETED, actor.id,
                              f"Raum {room_id} entfernt")
            logger.info(f"Raum {room_id} gelöscht von {actor.id}")
            return room_id

    def list_rooms(self, only_active: bool = False) -> list[Room]:
        return [r for r in self.store.rooms if r.is_active or not only_active]
