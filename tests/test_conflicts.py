"""Tests für die Überschneidungsprüfung (halboffene Intervalle)."""

from datetime import datetime

from models.booking import Booking, BookingStatus
from scheduling.conflicts import find_all_conflicts, find_conflict


DAY = datetime(2025, 3, 10)


def _at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)


def _make_booking(booking_id: str, start: datetime, end: datetime,
                  room_id: str = "r1", cancelled: bool = False) -> Booking:
    return Booking(
        id=booking_id, room_id=room_id, title=f"Termin {booking_id}",
        start_datetime=start, end_datetime=end, created_by_user_id="u1",
        status=BookingStatus.CANCELLED if cancelled else BookingStatus.ACTIVE,
        cancel_reason="abgesagt" if cancelled else None,
        created_at=DAY, updated_at=DAY,
    )


class TestFindConflict:
    def test_overlap_detected(self):
        """Teilweise Überlappung wird erkannt."""
        existing = _make_booking("b1", _at(9), _at(10))
        assert find_conflict([existing], "r1", _at(9, 30), _at(10, 30)) == existing

    def test_containment_both_directions(self):
        """Umschließen und Umschlossenwerden sind Konflikte."""
        existing = _make_booking("b1", _at(9), _at(12))
        assert find_conflict([existing], "r1", _at(10), _at(11)) == existing
        assert find_conflict([existing], "r1", _at(8), _at(13)) == existing

    def test_adjacent_bookings_do_not_conflict(self):
        """Ende == Beginn ist keine Überschneidung."""
        existing = _make_booking("b1", _at(9), _at(10))
        assert find_conflict([existing], "r1", _at(10), _at(11)) is None
        assert find_conflict([existing], "r1", _at(8), _at(9)) is None

    def test_cancelled_bookings_ignored(self):
        existing = _make_booking("b1", _at(9), _at(10), cancelled=True)
        assert find_conflict([existing], "r1", _at(9), _at(10)) is None

    def test_other_room_ignored(self):
        existing = _make_booking("b1", _at(9), _at(10), room_id="r2")
        assert find_conflict([existing], "r1", _at(9), _at(10)) is None

    def test_excluded_booking_ignored(self):
        """Beim Bearbeiten kollidiert eine Buchung nicht mit sich selbst."""
        existing = _make_booking("b1", _at(9), _at(10))
        assert find_conflict([existing], "r1", _at(9, 15), _at(10, 15),
                             exclude_booking_id="b1") is None

    def test_first_conflict_in_list_order(self):
        first = _make_booking("b1", _at(11), _at(12))
        second = _make_booking("b2", _at(9), _at(10))
        assert find_conflict([first, second], "r1", _at(9), _at(12)) == first

    def test_empty_list(self):
        assert find_conflict([], "r1", _at(9), _at(10)) is None


class TestFindAllConflicts:
    def test_pairs_per_room(self):
        """Nur überlappende aktive Paare im selben Raum werden gemeldet."""
        a = _make_booking("b1", _at(9), _at(11))
        b = _make_booking("b2", _at(10), _at(12))
        c = _make_booking("b3", _at(12), _at(13))
        d = _make_booking("b4", _at(10), _at(12), room_id="r2")
        pairs = find_all_conflicts([c, b, a, d])
        assert [(x.id, y.id) for x, y in pairs] == [("b1", "b2")]

    def test_cancelled_not_reported(self):
        a = _make_booking("b1", _at(9), _at(11))
        b = _make_booking("b2", _at(10), _at(12), cancelled=True)
        assert find_all_conflicts([a, b]) == []

    def test_chain_of_overlaps(self):
        a = _make_booking("b1", _at(9), _at(12))
        b = _make_booking("b2", _at(10), _at(11))
        c = _make_booking("b3", _at(11), _at(13))
        ids = {(x.id, y.id) for x, y in find_all_conflicts([a, b, c])}
        assert ids == {("b1", "b2"), ("b1", "b3")}
