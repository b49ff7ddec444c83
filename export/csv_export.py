"""CSV-Export der Buchungsliste (Semikolon-getrennt)."""

import csv
import io
from pathlib import Path
from typing import Optional, TextIO

from models.booking import Booking
from models.room import Room
from export.helpers import room_label, room_lookup

CSV_HEADER = ["ID", "Raum", "Titel", "Beginn", "Ende", "Status", "Stornogrund"]
CSV_DELIMITER = ";"


def write_bookings_csv(bookings: list[Booking], rooms: list[Room], out: TextIO) -> int:
    """Schreibt Kopfzeile + eine Zeile pro Buchung in Listenreihenfolge.

    Gibt die Anzahl der Datenzeilen zurück.
    """
    lookup = room_lookup(rooms)
    writer = csv.writer(out, delimiter=CSV_DELIMITER, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for b in bookings:
        writer.writerow([
            b.id,
            room_label(b.room_id, lookup),
            b.title,
            b.start_datetime.isoformat(),
            b.end_datetime.isoformat(),
            b.status.value,
            b.cancel_reason or "",
        ])
    return len(bookings)


def bookings_csv(bookings: list[Booking], rooms: list[Room]) -> str:
    """CSV als String."""
    buf = io.StringIO()
    write_bookings_csv(bookings, rooms, buf)
    return buf.getvalue()


def export_bookings_csv(bookings: list[Booking], rooms: list[Room],
                        output_path: Path, encoding: Optional[str] = "utf-8") -> Path:
    """Speichert die CSV-Datei und gibt den Pfad zurück."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding=encoding, newline="") as f:
        write_bookings_csv(bookings, rooms, f)
    return output_path
