"""Gemeinsame Hilfsfunktionen für CSV-, Excel- und PDF-Export."""

from datetime import date, datetime
from typing import Optional

from models.booking import Booking, BookingStatus
from models.room import Room

# Anzeige für Buchungen, deren Raum inzwischen gelöscht wurde
DELETED_ROOM_LABEL = "(gelöschter Raum)"

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "header":    "4472C4",
    "cancelled": "E0E0E0",
    "free":      "F5F5F5",
    "deleted":   "FF9999",
}

STATUS_LABELS: dict[BookingStatus, str] = {
    BookingStatus.ACTIVE: "aktiv",
    BookingStatus.CANCELLED: "storniert",
}


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Wandelt RRGGBB-String in (r, g, b)-Tupel um."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def lighten(hex_color: str, factor: float = 0.6) -> str:
    """Hellt eine Farbe Richtung Weiß auf (für Zellhintergründe)."""
    r, g, b = hex_to_rgb(hex_color)
    r, g, b = (int(c + (255 - c) * factor) for c in (r, g, b))
    return f"{r:02X}{g:02X}{b:02X}"


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


# ─── Raum-Auflösung (weiche Referenzen) ───────────────────────────────────────

def room_lookup(rooms: list[Room]) -> dict[str, Room]:
    return {r.id: r for r in rooms}


def room_label(room_id: str, rooms: dict[str, Room]) -> str:
    """Raumname oder DELETED_ROOM_LABEL, wenn der Raum nicht mehr existiert."""
    room = rooms.get(room_id)
    return room.name if room is not None else DELETED_ROOM_LABEL


# ─── Zeitformatierung ─────────────────────────────────────────────────────────

def format_time_range(start: datetime, end: datetime) -> str:
    """Formatiert "09:00–10:00"; über Mitternacht mit Datum des Endes."""
    if start.date() == end.date():
        return f"{start:%H:%M}–{end:%H:%M}"
    return f"{start:%H:%M}–{end:%d.%m. %H:%M}"


def bookings_in_range(bookings: list[Booking], start: Optional[date],
                      end: Optional[date]) -> list[Booking]:
    """Buchungen, deren Beginn im Datumsbereich [start, end] liegt."""
    return [
        b for b in bookings
        if (start is None or b.start_datetime.date() >= start)
        and (end is None or b.start_datetime.date() <= end)
    ]
