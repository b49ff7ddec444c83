"""Excel-Export der Buchungen (openpyxl)."""

import re
from pathlib import Path
from typing import Optional

from models.booking import Booking
from models.room import Room
from models.snapshot import StoreSnapshot

from export.helpers import (
    COLORS, STATUS_LABELS, DELETED_ROOM_LABEL, bookings_in_range, format_time_range,
    lighten, room_label, room_lookup, today_str,
)

_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


class ExcelExporter:
    """Exportiert den Datenbestand in eine Excel-Datei.

    Blätter: "Übersicht" (alle Buchungen), optional "Auslastung", dann ein
    Blatt pro Raum mit dessen Buchungen in Raumfarbe.
    """

    HEADERS = ["ID", "Raum", "Titel", "Datum", "Zeit", "Typ", "Teilnehmer",
               "Status", "Stornogrund", "Erstellt von"]
    COL_WIDTHS = [12, 24, 34, 12, 14, 11, 36, 11, 28, 18]
    ROW_HEADER_H = 22

    def __init__(self, snapshot: StoreSnapshot, date_format: str = "%d.%m.%Y"):
        self.data = snapshot
        self.rooms = room_lookup(snapshot.rooms)
        self.date_format = date_format

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path, utilization_report=None,
               start=None, end=None) -> Path:
        """Erstellt die Excel-Datei mit allen Blättern.

        utilization_report: optionaler UtilizationReport, wird als
        zusätzliches Blatt eingefügt.
        """
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        bookings = sorted(bookings_in_range(self.data.bookings, start, end),
                          key=lambda b: b.start_datetime)

        self._sheet_uebersicht(wb, bookings)
        if utilization_report is not None:
            self._sheet_auslastung(wb, utilization_report)
        for room in self.data.rooms:
            self._sheet_raum(wb, room, [b for b in bookings if b.room_id == room.id])

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        return output_path

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _sheet_title(self, name: str) -> str:
        """Excel erlaubt max. 31 Zeichen und keine []:*?/\\ im Blattnamen."""
        return _INVALID_SHEET_CHARS.sub("-", name)[:31]

    def _write_header_row(self, ws, headers: list[str], row: int = 1) -> None:
        from openpyxl.styles import Alignment, Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    def _set_widths(self, ws, widths: list[int]) -> None:
        from openpyxl.utils import get_column_letter
        for col, w in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = w

    # ─── Buchungszeilen ───────────────────────────────────────────────────────

    def _booking_row(self, b: Booking) -> list:
        creator = self.data.get_user(b.created_by_user_id)
        return [
            b.id,
            room_label(b.room_id, self.rooms),
            b.title,
            b.start_datetime.strftime(self.date_format),
            format_time_range(b.start_datetime, b.end_datetime),
            b.type.value,
            ", ".join(b.participants),
            STATUS_LABELS[b.status],
            b.cancel_reason or "",
            creator.name if creator else b.created_by_user_id,
        ]

    def _row_color(self, b: Booking) -> Optional[str]:
        if not b.is_active:
            return COLORS["cancelled"]
        room = self.rooms.get(b.room_id)
        if room is None:
            return COLORS["deleted"]
        return lighten(room.color)

    def _write_bookings(self, ws, bookings: list[Booking], first_row: int = 2) -> int:
        """Schreibt Buchungszeilen; gibt die nächste freie Zeile zurück."""
        from openpyxl.styles import Font
        border = self._thin_border()
        row = first_row
        for b in bookings:
            fill = self._fill(self._row_color(b))
            for col, value in enumerate(self._booking_row(b), 1):
                c = ws.cell(row=row, column=col, value=value)
                c.fill = fill
                c.border = border
                if not b.is_active:
                    c.font = Font(italic=True, color="666666")
            row += 1
        return row

    # ─── Sheet: Übersicht ─────────────────────────────────────────────────────

    def _sheet_uebersicht(self, wb, bookings: list[Booking]) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title="Übersicht", index=0)

        ws.cell(row=1, column=1, value="Raumbuchungen").font = Font(bold=True, size=14)
        ws.cell(row=2, column=1, value=f"Erstellt: {today_str()}")
        ws.cell(row=2, column=3, value=f"Buchungen: {len(bookings)}")
        self._write_header_row(ws, self.HEADERS, row=4)
        self._write_bookings(ws, bookings, first_row=5)
        self._set_widths(ws, self.COL_WIDTHS)
        ws.freeze_panes = "A5"

    # ─── Sheet: Raum ──────────────────────────────────────────────────────────

    def _sheet_raum(self, wb, room: Room, bookings: list[Booking]) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title=self._sheet_title(f"{room.id} {room.name}"))

        status = "aktiv" if room.is_active else "inaktiv"
        ws.cell(row=1, column=1, value=room.name).font = Font(bold=True, size=13)
        ws.cell(row=2, column=1,
                value=f"{room.location} | {room.capacity} Plätze | {status}")
        ws.cell(row=3, column=1,
                value="Ausstattung: " + (", ".join(r.value for r in room.resources) or "–"))
        self._write_header_row(ws, self.HEADERS, row=5)
        next_row = self._write_bookings(ws, bookings, first_row=6)
        if not bookings:
            ws.cell(row=next_row, column=1, value="Keine Buchungen").font = Font(italic=True)
        self._set_widths(ws, self.COL_WIDTHS)

    # ─── Sheet: Auslastung ────────────────────────────────────────────────────

    def _sheet_auslastung(self, wb, report) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title="Auslastung")
        border = self._thin_border()

        ws.cell(row=1, column=1, value="Auslastung").font = Font(bold=True, size=14)
        summary = [
            ("Aktive Buchungen", report.total_active),
            ("Stornierungen", report.total_cancelled),
            ("Betroffene Personen", report.people_impacted),
            ("Gebuchte Stunden", report.booked_hours),
        ]
        row = 3
        for label, value in summary:
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            ws.cell(row=row, column=2, value=value)
            row += 1

        row += 1
        self._write_header_row(ws, ["Raum", "Buchungen", "Stunden", "Auslastung"], row=row)
        row += 1
        for m in report.room_metrics:
            values = [m.name, m.active_bookings, m.booked_hours, f"{m.occupancy_rate:.0%}"]
            for col, v in enumerate(values, 1):
                ws.cell(row=row, column=col, value=v).border = border
            row += 1
        self._set_widths(ws, [30, 12, 12, 12])


__all__ = ["ExcelExporter", "DELETED_ROOM_LABEL"]
