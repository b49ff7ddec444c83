"""Tests für CSV-, Excel- und PDF-Export."""

from datetime import date, datetime
from pathlib import Path

import pytest

from analysis.utilization import UtilizationAnalyzer
from export.csv_export import CSV_HEADER, bookings_csv, export_bookings_csv
from export.excel_export import ExcelExporter
from export.helpers import (
    DELETED_ROOM_LABEL,
    bookings_in_range,
    format_time_range,
    hex_to_rgb,
    lighten,
)
from export.pdf_export import PdfExporter, _pdf_safe
from models.snapshot import StoreSnapshot
from scheduling.bookings import BookingManager
from scheduling.clock import FixedClock, SequentialIdGenerator
from scheduling.rooms import RoomManager
from scheduling.store import EntityStore, MemoryBackend


NOW = datetime(2025, 3, 10, 8, 0)


def _make_snapshot() -> StoreSnapshot:
    """Startdaten + eine stornierte Buchung + eine Buchung am Folgetag in r3."""
    store = EntityStore(MemoryBackend(), clock=FixedClock(NOW),
                        id_generator=SequentialIdGenerator()).load()
    bookings = BookingManager(store)
    bookings.cancel_booking("b2", "Kandidat abgesprungen")
    bookings.upsert_booking({
        "room_id": "r3", "title": "All Hands",
        "start_datetime": datetime(2025, 3, 11, 10), "end_datetime": datetime(2025, 3, 11, 12),
        "participants": ["Anna", "Ben", "Clara"],
    })
    return store.snapshot


@pytest.fixture
def snapshot() -> StoreSnapshot:
    return _make_snapshot()


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

class TestHelpers:
    def test_format_time_range(self):
        assert format_time_range(datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 10, 30)) \
            == "09:00–10:30"

    def test_format_time_range_over_midnight(self):
        assert format_time_range(datetime(2025, 1, 1, 23), datetime(2025, 1, 2, 1)) \
            == "23:00–02.01. 01:00"

    def test_colors(self):
        assert hex_to_rgb("#3b82f6") == (59, 130, 246)
        assert lighten("000000", 0.5) == "7F7F7F"
        assert lighten("#FFFFFF") == "FFFFFF"

    def test_bookings_in_range(self, snapshot):
        assert [b.id for b in bookings_in_range(snapshot.bookings, date(2025, 3, 11), None)] \
            == ["b3"]
        assert [b.id for b in bookings_in_range(snapshot.bookings, None, date(2025, 3, 10))] \
            == ["b1", "b2"]

    def test_pdf_safe(self):
        assert _pdf_safe("09:00–10:00 → Raum") == "09:00-10:00 -> Raum"


# ─── CSV ──────────────────────────────────────────────────────────────────────

class TestCsvExport:
    def test_header_and_rows(self, snapshot):
        lines = bookings_csv(snapshot.bookings, snapshot.rooms).splitlines()
        assert lines[0] == ";".join(CSV_HEADER)
        assert lines[1] == "b1;Raum Berlin;Daily IT;2025-03-10T09:00:00;2025-03-10T10:00:00;active;"
        assert lines[2].endswith(";cancelled;Kandidat abgesprungen")
        assert len(lines) == 4

    def test_deleted_room_label(self, snapshot):
        rooms = [r for r in snapshot.rooms if r.id != "r1"]
        lines = bookings_csv(snapshot.bookings, rooms).splitlines()
        assert lines[1].split(";")[1] == DELETED_ROOM_LABEL

    def test_semicolon_in_title_is_quoted(self, snapshot):
        booking = snapshot.bookings[0].model_copy(update={"title": "A;B"})
        line = bookings_csv([booking], snapshot.rooms).splitlines()[1]
        assert '"A;B"' in line

    def test_empty_list_only_header(self, snapshot):
        assert bookings_csv([], snapshot.rooms) == ";".join(CSV_HEADER) + "\n"

    def test_export_to_file(self, snapshot, tmp_path: Path):
        path = export_bookings_csv(snapshot.bookings, snapshot.rooms,
                                   tmp_path / "out" / "buchungen.csv")
        assert path.exists()
        assert path.read_text(encoding="utf-8").startswith("ID;Raum;Titel")


# ─── Excel ────────────────────────────────────────────────────────────────────

class TestExcelExport:
    def test_sheets(self, snapshot, tmp_path: Path):
        from openpyxl import load_workbook
        report = UtilizationAnalyzer(snapshot).analyze()
        path = ExcelExporter(snapshot).export(tmp_path / "buchungen.xlsx", report)
        wb = load_workbook(path)
        assert wb.sheetnames == ["Übersicht", "Auslastung", "r1 Raum Berlin",
                                 "r2 Raum Hamburg", "r3 Großer Saal"]

    def test_overview_rows(self, snapshot, tmp_path: Path):
        from openpyxl import load_workbook
        path = ExcelExporter(snapshot).export(tmp_path / "buchungen.xlsx")
        ws = load_workbook(path)["Übersicht"]
        assert ws.cell(row=4, column=1).value == "ID"
        assert [ws.cell(row=r, column=1).value for r in (5, 6, 7)] == ["b1", "b2", "b3"]
        assert ws.cell(row=6, column=8).value == "storniert"
        assert ws.cell(row=7, column=7).value == "Anna, Ben, Clara"

    def test_date_range_and_empty_room_sheet(self, snapshot, tmp_path: Path):
        from openpyxl import load_workbook
        path = ExcelExporter(snapshot).export(tmp_path / "x.xlsx",
                                              start=date(2025, 3, 11), end=date(2025, 3, 11))
        wb = load_workbook(path)
        assert wb["Übersicht"].cell(row=5, column=1).value == "b3"
        assert wb["r1 Raum Berlin"].cell(row=6, column=1).value == "Keine Buchungen"

    def test_deleted_room_highlighted(self, tmp_path: Path):
        from openpyxl import load_workbook
        store = EntityStore(MemoryBackend(), clock=FixedClock(datetime(2025, 3, 10, 12)),
                            id_generator=SequentialIdGenerator()).load()
        assert RoomManager(store).delete_room("r1")
        path = ExcelExporter(store.snapshot).export(tmp_path / "x.xlsx")
        ws = load_workbook(path)["Übersicht"]
        assert ws.cell(row=5, column=2).value == DELETED_ROOM_LABEL


# ─── PDF ──────────────────────────────────────────────────────────────────────

class TestPdfExport:
    def test_room_agendas(self, snapshot, tmp_path: Path):
        path = PdfExporter(snapshot).export_room_agendas(tmp_path / "pdf" / "belegung.pdf")
        assert path.exists()
        assert path.read_bytes()[:4] == b"%PDF"

    def test_selected_rooms_and_range(self, snapshot, tmp_path: Path):
        path = PdfExporter(snapshot).export_room_agendas(
            tmp_path / "r3.pdf", start=date(2025, 3, 11), end=date(2025, 3, 12),
            room_ids=["r3"])
        assert path.stat().st_size > 0
