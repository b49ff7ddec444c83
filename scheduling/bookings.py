"""Booking Lifecycle Manager: Anlegen, Bearbeiten und Stornieren von Buchungen.

Ablauf jeder Operation (eine Transaktion):
1. Angemeldeten Benutzer prüfen
2. Eingabe prüfen (validation)
3. Überschneidung prüfen (conflicts)
4. Änderung schreiben + genau ein Audit-Eintrag
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from models.audit import AuditAction
from models.booking import Booking, BookingDraft, BookingStatus
from models.snapshot import StoreSnapshot
from models.user import User
from scheduling.audit import AuditLogger
from scheduling.conflicts import find_conflict
from scheduling.exceptions import (
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from scheduling.result import OperationResult, as_result
from scheduling.store import EntityStore
from scheduling.validation import validate_booking_request, validate_cancel_reason

logger = logging.getLogger(__name__)

# Felder, die beim Bearbeiten nie aus der Eingabe übernommen werden
_PROTECTED_FIELDS = {"id", "created_by_user_id", "created_at", "status", "cancel_reason"}


def _require_actor(data: StoreSnapshot) -> User:
    if data.current_user is None:
        raise UnauthenticatedError()
    return data.current_user


def _build_booking(values: dict) -> Booking:
    """Booking aus Rohwerten; Pydantic-Fehler werden zu ValidationError."""
    try:
        return Booking.model_validate(values)
    except PydanticValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ValidationError(f"Ungültige Buchung: {messages}") from e


class BookingManager:
    """Buchungs-Lebenszyklus auf einem EntityStore."""

    def __init__(self, store: EntityStore, audit: Optional[AuditLogger] = None):
        self.store = store
        self.audit = audit or AuditLogger(store)

    # ─── Anlegen / Bearbeiten ─────────────────────────────────────────────────

    @as_result
    def upsert_booking(self, draft: Union[BookingDraft, dict]) -> str:
        """Legt eine Buchung an (ohne id) oder bearbeitet sie (mit id).

        Gibt ein OperationResult zurück; bei Erfolg mit der Buchungs-ID.
        """
        if isinstance(draft, dict):
            try:
                draft = BookingDraft.model_validate(draft)
            except PydanticValidationError as e:
                raise ValidationError(f"Ungültige Eingabe: {e.error_count()} Fehler") from e

        with self.store.transaction() as data:
            actor = _require_actor(data)
            now = self.store.clock.now()

            existing: Optional[Booking] = None
            if draft.id:
                existing = data.get_booking(draft.id)
                if existing is None:
                    raise NotFoundError("Buchung", draft.id)
                if existing.status == BookingStatus.CANCELLED:
                    raise ValidationError(
                        f"Buchung {existing.id} ist storniert und kann nicht bearbeitet werden.")
                candidate = BookingDraft.model_validate({
                    **existing.model_dump(include=set(BookingDraft.model_fields)),
                    **draft.changes(),
                })
            else:
                candidate = draft

            validate_booking_request(candidate, now, data.config, data.get_room(candidate.room_id))

            conflict = find_conflict(
                data.bookings, candidate.room_id,
                candidate.start_datetime, candidate.end_datetime,
                exclude_booking_id=draft.id,
            )
            if conflict is not None:
                raise ConflictError(conflict)

            if existing is not None:
                return self._apply_edit(data, existing, draft, actor, now)
            return self._apply_create(data, candidate, actor, now)

    def _apply_edit(self, data: StoreSnapshot, existing: Booking,
                    draft: BookingDraft, actor: User, now) -> str:
        changes = {k: v for k, v in draft.changes().items() if k not in _PROTECTED_FIELDS}
        if "title" in changes:
            changes["title"] = changes["title"].strip()
        updated = _build_booking({**existing.model_dump(), **changes, "updated_at": now})
        idx = data.bookings.index(existing)
        data.bookings[idx] = updated
        self.audit.record(data, AuditAction.BOOKING_EDITED, actor.id,
                          f"Buchung {updated.id} bearbeitet von {actor.name}")
        logger.info(f"Buchung {updated.id} bearbeitet von {actor.id}")
        return updated.id

    def _apply_create(self, data: StoreSnapshot, candidate: BookingDraft,
                      actor: User, now) -> str:
        values = candidate.changes()
        values["title"] = candidate.title.strip()
        booking = _build_booking({
            **values,
            "id": self.store.new_id("b", {b.id for b in data.bookings}),
            "created_by_user_id": actor.id,
            "status": BookingStatus.ACTIVE,
            "created_at": now,
            "updated_at": now,
        })
        data.bookings.append(booking)
        self.audit.record(data, AuditAction.BOOKING_CREATED, actor.id,
                          f"Neue Buchung angelegt: {booking.title}")
        logger.info(
            f"Buchung {booking.id} angelegt: Raum {booking.room_id}, "
            f"{booking.start_datetime:%Y-%m-%d %H:%M}-{booking.end_datetime:%H:%M}"
        )
        return booking.id

    # ─── Stornieren ───────────────────────────────────────────────────────────

    @as_result
    def cancel_booking(self, booking_id: str, reason: str) -> str:
        """Storniert eine Buchung unwiderruflich."""
        with self.store.transaction() as data:
            actor = _require_actor(data)
            reason = validate_cancel_reason(reason)
            booking = data.get_booking(booking_id)
            if booking is None:
                raise NotFoundError("Buchung", booking_id)
            if booking.status == BookingStatus.CANCELLED:
                raise ValidationError(f"Buchung {booking_id} ist bereits storniert.")

            cancelled = _build_booking({
                **booking.model_dump(),
                "status": BookingStatus.CANCELLED,
                "cancel_reason": reason,
                "updated_at": self.store.clock.now(),
            })
            data.bookings[data.bookings.index(booking)] = cancelled
            self.audit.record(data, AuditAction.BOOKING_CANCELLED, actor.id,
                              f"Buchung {booking_id} storniert. Grund: {reason}")
            logger.info(f"Buchung {booking_id} storniert von {actor.id}")
            return booking_id

    # ─── Lesen ────────────────────────────────────────────────────────────────

    def list_bookings(self, room_id: Optional[str] = None,
                      include_cancelled: bool = True) -> list[Booking]:
        """Buchungen in Einfügereihenfolge, optional gefiltert."""
        return [
            b for b in self.store.bookings
            if (room_id is None or b.room_id == room_id)
            and (include_cancelled or b.is_active)
        ]

    def my_bookings(self) -> list[Booking]:
        """Buchungen des angemeldeten Benutzers (Admins: alle)."""
        user = self.store.current_user
        if user is None:
            return []
        return self.store.snapshot.bookings_for_user(user)
