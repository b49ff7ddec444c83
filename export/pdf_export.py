"""PDF-Export: Raumbelegungspläne (fpdf2)."""

from datetime import date
from pathlib import Path
from typing import Optional

from models.booking import Booking
from models.room import Room
from models.snapshot import StoreSnapshot

from export.helpers import (
    COLORS, STATUS_LABELS, bookings_in_range, format_time_range, hex_to_rgb,
    lighten, today_str,
)


def _pdf_safe(text: str) -> str:
    """Ersetzt nicht-latin-1-fähige Zeichen für fpdf2-Built-in-Fonts."""
    text = (
        text
        .replace("—", " - ")   # em dash —
        .replace("–", "-")      # en dash –
        .replace("→", "->")     # Pfeil →
    )
    return text.encode("latin-1", errors="replace").decode("latin-1")


# ─── A4-Hochformat-Dimensionen ────────────────────────────────────────────────
# Portrait A4: 210 × 297 mm, Margin 10 links+rechts → nutzbar 190 mm
# Spalten: Datum(22) + Zeit(24) + Titel(62) + Typ(20) + Teiln.(40) + Status(22) = 190 mm

_COLS = [
    ("Datum", 22),
    ("Zeit", 24),
    ("Titel", 62),
    ("Typ", 20),
    ("Teilnehmer", 40),
    ("Status", 22),
]
_ROW_HEADER_H = 7    # mm
_ROW_H        = 8    # mm
_FONT_HEADER  = 8    # pt
_FONT_CONTENT = 7    # pt


class _AgendaPdf:
    """Interner Wrapper um fpdf.FPDF für Belegungsplan-Seiten."""

    def __init__(self, title: str):
        from fpdf import FPDF

        class _Pdf(FPDF):
            def __init__(inner, doc_title):
                super().__init__(orientation="P", unit="mm", format="A4")
                inner._doc_title = doc_title
                inner._entity_title = ""
                inner.alias_nb_pages()
                inner.set_auto_page_break(auto=True, margin=18)
                inner.set_margins(left=10, top=22, right=10)

            def header(inner):
                inner.set_font("Helvetica", "B", 11)
                inner.set_xy(10, 8)
                inner.cell(90, 7, _pdf_safe(inner._doc_title), border=0, align="L")
                inner.cell(0, 7, _pdf_safe(inner._entity_title), border=0, align="R")
                inner.ln(0)
                inner.set_draw_color(150, 150, 150)
                inner.line(10, 18, inner.w - 10, 18)

            def footer(inner):
                inner.set_y(-14)
                inner.set_font("Helvetica", "I", 7)
                inner.cell(
                    0, 8,
                    f"{today_str()}  |  Seite {inner.page_no()}/{{nb}}",
                    border=0, align="C",
                )

        self._pdf = _Pdf(title)

    def set_entity(self, title: str) -> None:
        self._pdf._entity_title = title

    def add_page(self) -> None:
        self._pdf.add_page()

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._pdf.output(str(path))

    # ─── Zellen-Zeichnung ─────────────────────────────────────────────────────

    def draw_row(self, values: list[str], bg_hex: Optional[str] = None,
                 bold: bool = False, header: bool = False) -> None:
        """Zeichnet eine Tabellenzeile an der aktuellen Position."""
        pdf = self._pdf
        h = _ROW_HEADER_H if header else _ROW_H
        if pdf.get_y() + h > pdf.h - 18:
            pdf.add_page()
        if bg_hex:
            pdf.set_fill_color(*hex_to_rgb(bg_hex))
        pdf.set_draw_color(180, 180, 180)
        pdf.set_font("Helvetica", "B" if bold else "", _FONT_HEADER if header else _FONT_CONTENT)
        pdf.set_text_color(*((255, 255, 255) if header else (0, 0, 0)))
        pdf.set_x(10)
        for (label, w), value in zip(_COLS, values):
            text = _pdf_safe(value)
            # grob auf Spaltenbreite kürzen (ca. 1,6 mm pro Zeichen bei 7pt)
            max_chars = int(w / 1.6)
            if len(text) > max_chars:
                text = text[: max_chars - 1] + "."
            pdf.cell(w, h, text, border=1, align="L", fill=bool(bg_hex))
        pdf.ln(h)
        pdf.set_text_color(0, 0, 0)

    def draw_text(self, text: str, size: int = 9, style: str = "") -> None:
        pdf = self._pdf
        pdf.set_font("Helvetica", style, size)
        pdf.set_x(10)
        pdf.cell(0, 6, _pdf_safe(text), border=0, align="L")
        pdf.ln(6)


class PdfExporter:
    """Erzeugt Belegungspläne: eine Seite (oder mehr) pro Raum."""

    def __init__(self, snapshot: StoreSnapshot, date_format: str = "%d.%m.%Y"):
        self.data = snapshot
        self.date_format = date_format

    def export_room_agendas(self, output_path: Path, start: Optional[date] = None,
                            end: Optional[date] = None,
                            room_ids: Optional[list[str]] = None) -> Path:
        """Belegungsplan aller (oder ausgewählter) Räume im Zeitraum."""
        pdf = _AgendaPdf("Raumbelegung")
        rooms = [r for r in self.data.rooms if room_ids is None or r.id in room_ids]
        for room in rooms:
            bookings = sorted(
                bookings_in_range(self.data.bookings_for_room(room.id), start, end),
                key=lambda b: b.start_datetime,
            )
            pdf.set_entity(f"{room.name} | {room.capacity} Plätze")
            pdf.add_page()
            self._draw_room(pdf, room, bookings, start, end)
        pdf.save(output_path)
        return Path(output_path)

    def _draw_room(self, pdf: _AgendaPdf, room: Room, bookings: list[Booking],
                   start: Optional[date], end: Optional[date]) -> None:
        period = "alle Termine"
        if start or end:
            period = (f"{start.strftime(self.date_format) if start else '...'} bis "
                      f"{end.strftime(self.date_format) if end else '...'}")
        pdf.draw_text(room.name, size=13, style="B")
        pdf.draw_text(f"{room.location}  |  Zeitraum: {period}"
                      + ("" if room.is_active else "  |  INAKTIV"))
        pdf.draw_row([label for label, _ in _COLS], bg_hex=COLORS["header"],
                     bold=True, header=True)
        if not bookings:
            pdf.draw_text("Keine Buchungen.", style="I")
            return
        row_color = lighten(room.color, 0.8)
        for b in bookings:
            pdf.draw_row(
                [
                    b.start_datetime.strftime(self.date_format),
                    format_time_range(b.start_datetime, b.end_datetime),
                    b.title,
                    b.type.value,
                    ", ".join(b.participants),
                    STATUS_LABELS[b.status],
                ],
                bg_hex=row_color if b.is_active else COLORS["cancelled"],
            )
