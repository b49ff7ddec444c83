"""Eingabeprüfung vor den Lifecycle-Operationen.

Grundregeln gelten immer: Pflichtfelder, Ende nach Beginn, keine Buchung in
der Vergangenheit, Zielraum existiert und ist aktiv. Die Richtlinien aus
AppConfig (Öffnungszeiten, Vorlauf, Maximaldauer, Serien) greifen nur mit
enforce_policy=True.
"""

from datetime import datetime, timedelta
from typing import Optional

from config.schema import AppConfig
from models.booking import BookingDraft
from models.room import Room, RoomDraft
from scheduling.exceptions import ValidationError


def validate_booking_request(
    draft: BookingDraft,
    now: datetime,
    config: AppConfig,
    room: Optional[Room],
) -> None:
    """Prüft eine vollständig zusammengeführte Buchungseingabe.

    Wirft ValidationError mit einer direkt anzeigbaren Meldung.
    """
    if not draft.title or not draft.title.strip() or not draft.room_id \
            or draft.start_datetime is None or draft.end_datetime is None:
        raise ValidationError("Bitte alle Pflichtfelder ausfüllen (Titel, Raum, Beginn, Ende).")

    start, end = draft.start_datetime, draft.end_datetime
    if start >= end:
        raise ValidationError("Das Ende muss nach dem Beginn liegen.")
    if start < now:
        raise ValidationError("Buchungen in der Vergangenheit sind nicht möglich.")

    if room is None:
        raise ValidationError(f"Raum {draft.room_id} existiert nicht.")
    if not room.is_active:
        raise ValidationError(f"Raum {room.name} ist deaktiviert und nicht buchbar.")

    if config.enforce_policy:
        _check_policy(start, end, now, config, bool(draft.is_recurring))


def _check_policy(start: datetime, end: datetime, now: datetime,
                  config: AppConfig, is_recurring: bool) -> None:
    if start < now + timedelta(minutes=config.min_advance_time):
        raise ValidationError(
            f"Buchungen benötigen mindestens {config.min_advance_time} Minuten Vorlauf.")
    if end - start > timedelta(hours=config.max_duration):
        raise ValidationError(
            f"Eine Buchung darf höchstens {config.max_duration} Stunden dauern.")
    if start.date() != end.date() \
            or start.time() < config.opening or end.time() > config.closing:
        raise ValidationError(
            f"Buchungen nur zwischen {config.opening_time} und "
            f"{config.closing_time} am selben Tag.")
    if is_recurring and not config.allow_recurring:
        raise ValidationError("Serienbuchungen sind derzeit nicht erlaubt.")


def validate_room_request(draft: RoomDraft, creating: bool) -> None:
    """Pflichtfelder beim Anlegen, Plausibilität beim Bearbeiten."""
    if creating:
        if not draft.name or not draft.name.strip():
            raise ValidationError("Der Raum benötigt einen Namen.")
        if draft.capacity is None:
            raise ValidationError("Der Raum benötigt eine Kapazität.")
    elif draft.name is not None and not draft.name.strip():
        raise ValidationError("Der Raumname darf nicht leer sein.")
    if draft.capacity is not None and draft.capacity <= 0:
        raise ValidationError("Die Kapazität muss positiv sein.")


def validate_cancel_reason(reason: Optional[str]) -> str:
    """Stornogrund ist Pflicht; gibt ihn getrimmt zurück."""
    if not reason or not reason.strip():
        raise ValidationError("Bitte einen Stornogrund angeben.")
    return reason.strip()
