"""Tests für Auslastungsbericht und Integritätsprüfung."""

import math
from datetime import date, datetime

import pytest

from analysis.integrity import IntegrityChecker
from analysis.utilization import NO_DEPARTMENT, UtilizationAnalyzer
from models.booking import Booking
from models.snapshot import StoreSnapshot
from models.user import User
from scheduling.bookings import BookingManager
from scheduling.clock import FixedClock, SequentialIdGenerator
from scheduling.store import EntityStore, MemoryBackend


NOW = datetime(2025, 3, 10, 8, 0)


def _make_store() -> EntityStore:
    return EntityStore(MemoryBackend(), clock=FixedClock(NOW),
                       id_generator=SequentialIdGenerator()).load()


def _extra_booking(booking_id: str, room_id: str, start: datetime, end: datetime) -> Booking:
    return Booking(id=booking_id, room_id=room_id, title="Zusatz",
                   start_datetime=start, end_datetime=end, created_by_user_id="u1",
                   created_at=NOW, updated_at=NOW)


# ─── Auslastung ───────────────────────────────────────────────────────────────

class TestUtilization:
    def test_seed_figures(self):
        """Daily IT (1 h, 2 Teilnehmer) + Bewerbungsgespräche (1,5 h, 2 Teilnehmer)."""
        report = UtilizationAnalyzer(_make_store().snapshot).analyze()
        assert report.total_active == 2
        assert report.total_cancelled == 0
        assert report.people_impacted == 4
        assert report.booked_hours == 2.5
        assert report.period_start == report.period_end == date(2025, 3, 10)
        assert report.cancellation_rate == 0.0

    def test_room_metrics(self):
        report = UtilizationAnalyzer(_make_store().snapshot).analyze()
        by_id = {m.room_id: m for m in report.room_metrics}
        assert by_id["r1"].booked_hours == 1.0
        assert by_id["r1"].occupancy_rate == round(1 / 13, 4)
        assert by_id["r3"].active_bookings == 0
        assert report.room_metrics[-1].room_id == "r3"

    def test_cancellations_counted(self):
        store = _make_store()
        BookingManager(store).cancel_booking("b2", "abgesagt")
        report = UtilizationAnalyzer(store.snapshot).analyze()
        assert report.total_active == 1
        assert report.total_cancelled == 1
        assert report.cancellation_rate == 0.5
        assert report.people_impacted == 2

    def test_booking_without_participants_counts_one_person(self):
        store = _make_store()
        BookingManager(store).upsert_booking({
            "room_id": "r3", "title": "Fokuszeit",
            "start_datetime": datetime(2025, 3, 10, 11), "end_datetime": datetime(2025, 3, 10, 12),
        })
        assert UtilizationAnalyzer(store.snapshot).analyze().people_impacted == 5

    def test_department_counts(self):
        snapshot = _make_store().snapshot
        snapshot.users.append(User(id="u9", name="Extern", email="x@y.de"))
        snapshot.bookings.append(_extra_booking("b9", "r3", datetime(2025, 3, 10, 16),
                                                datetime(2025, 3, 10, 17))
                                 .model_copy(update={"created_by_user_id": "u9"}))
        report = UtilizationAnalyzer(snapshot).analyze()
        assert report.department_counts == {"IT": 1, "Personal": 1, NO_DEPARTMENT: 1}

    def test_explicit_range(self):
        report = UtilizationAnalyzer(_make_store().snapshot).analyze(
            date(2025, 3, 11), date(2025, 3, 17))
        assert report.total_active == 0
        assert report.booked_hours == 0
        assert all(m.occupancy_rate == 0 for m in report.room_metrics)

    def test_inverted_range_has_no_negative_rates(self):
        """--from nach --to: leerer Zeitraum, Quoten bleiben 0.0 (auch kein -0.0)."""
        report = UtilizationAnalyzer(_make_store().snapshot).analyze(
            date(2025, 3, 17), date(2025, 3, 10))
        assert report.total_active == 0
        assert all(math.copysign(1.0, m.occupancy_rate) == 1.0 for m in report.room_metrics)

    def test_empty_store(self):
        report = UtilizationAnalyzer(StoreSnapshot()).analyze()
        assert report.total_active == 0
        assert report.period_start is None
        assert report.room_metrics == []


# ─── Integrität ───────────────────────────────────────────────────────────────

class TestIntegrity:
    def test_seed_data_is_valid(self):
        report = IntegrityChecker().check(_make_store().snapshot)
        assert report.is_valid
        assert report.violations == []

    def test_lifecycle_keeps_data_valid(self):
        store = _make_store()
        manager = BookingManager(store)
        manager.upsert_booking({"room_id": "r1", "title": "A",
                                "start_datetime": datetime(2025, 3, 10, 10),
                                "end_datetime": datetime(2025, 3, 10, 11)})
        manager.upsert_booking({"id": "b1", "title": "B"})
        manager.cancel_booking("b2", "weg")
        assert IntegrityChecker().check(store.snapshot).is_valid

    def test_double_booking_detected(self):
        snapshot = _make_store().snapshot
        snapshot.bookings.append(_extra_booking("b9", "r1", datetime(2025, 3, 10, 9, 30),
                                                datetime(2025, 3, 10, 11)))
        report = IntegrityChecker().check(snapshot)
        assert not report.is_valid
        assert [(v.constraint, v.entity) for v in report.violations] \
            == [("room_double_booking", "b1")]

    def test_duplicate_ids(self):
        snapshot = _make_store().snapshot
        snapshot.bookings.append(_extra_booking("b1", "r3", datetime(2025, 3, 12, 9),
                                                datetime(2025, 3, 12, 10)))
        report = IntegrityChecker().check(snapshot)
        assert any(v.constraint == "duplicate_booking_id" for v in report.violations)

    def test_dangling_references_are_warnings(self):
        snapshot = _make_store().snapshot
        snapshot.rooms = [r for r in snapshot.rooms if r.id != "r1"]
        snapshot.users = [u for u in snapshot.users if u.id != "u3"]
        report = IntegrityChecker().check(snapshot)
        assert report.is_valid
        constraints = sorted(v.constraint for v in report.violations)
        assert constraints == ["deleted_room_reference", "unknown_creator"]

    def test_log_order_warning(self):
        store = _make_store()
        manager = BookingManager(store)
        manager.cancel_booking("b1", "x")
        store.clock.advance(minutes=1)
        manager.cancel_booking("b2", "y")
        snapshot = store.snapshot
        snapshot.logs.reverse()
        report = IntegrityChecker().check(snapshot)
        assert [v.constraint for v in report.violations] == ["audit_log_order"]

    @pytest.mark.parametrize("printer", ["utilization", "integrity"])
    def test_print_rich_does_not_fail(self, printer, capsys):
        snapshot = _make_store().snapshot
        if printer == "utilization":
            UtilizationAnalyzer(snapshot).analyze().print_rich()
        else:
            IntegrityChecker().check(snapshot).print_rich()
        assert capsys.readouterr().out
