"""Conflict Detector: Überschneidungsprüfung für Raumbuchungen."""

from datetime import datetime
from typing import Iterable, Optional

from models.booking import Booking, BookingStatus


def find_conflict(
    bookings: Iterable[Booking],
    room_id: str,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
) -> Optional[Booking]:
    """Gibt die erste aktive Buchung im Raum zurück, die [start, end) überlappt.

    Stornierte Buchungen, andere Räume und die Buchung mit
    `exclude_booking_id` (beim Bearbeiten die eigene) werden übersprungen.
    Halboffene Regel: start < bestehendes Ende UND end > bestehender Beginn,
    direkt aneinandergrenzende Buchungen kollidieren also nicht.
    Die Reihenfolge von `start` und `end` prüft der Aufrufer.
    """
    for b in bookings:
        if b.status == BookingStatus.CANCELLED:
            continue
        if b.room_id != room_id:
            continue
        if exclude_booking_id is not None and b.id == exclude_booking_id:
            continue
        if b.overlaps(start, end):
            return b
    return None


def find_all_conflicts(bookings: list[Booking]) -> list[tuple[Booking, Booking]]:
    """Alle Paare aktiver Buchungen im selben Raum mit Überschneidung."""
    by_room: dict[str, list[Booking]] = {}
    for b in bookings:
        if b.status == BookingStatus.ACTIVE:
            by_room.setdefault(b.room_id, []).append(b)

    pairs: list[tuple[Booking, Booking]] = []
    for room_bookings in by_room.values():
        ordered = sorted(room_bookings, key=lambda b: b.start_datetime)
        for i, first in enumerate(ordered):
            for second in ordered[i + 1:]:
                if second.start_datetime >= first.end_datetime:
                    break
                pairs.append((first, second))
    return pairs
