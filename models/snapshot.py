"""StoreSnapshot: alle Sammlungen des Datenbestands in einem Objekt (Pydantic v2)."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from config.schema import AppConfig
from models.audit import AuditEntry
from models.booking import Booking, BookingStatus
from models.room import Room
from models.user import User


class StoreSnapshot(BaseModel):
    """Räume, Buchungen, Benutzer, Richtlinien, Audit-Log und aktueller Benutzer.

    Querverweise laufen ausschließlich über IDs (weiche Referenzen): eine
    Buchung darf auf einen gelöschten Raum zeigen.
    """

    rooms: list[Room] = []
    bookings: list[Booking] = []
    users: list[User] = []
    config: AppConfig = Field(default_factory=AppConfig)
    logs: list[AuditEntry] = []            # neueste zuerst
    current_user: Optional[User] = None

    # ─── Nachschlagen ───

    def get_room(self, room_id: str) -> Optional[Room]:
        return next((r for r in self.rooms if r.id == room_id), None)

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return next((b for b in self.bookings if b.id == booking_id), None)

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    # ─── Listen ───

    def active_bookings(self) -> list[Booking]:
        return [b for b in self.bookings if b.status == BookingStatus.ACTIVE]

    def bookings_for_room(self, room_id: str) -> list[Booking]:
        """Buchungen eines Raums in Einfügereihenfolge."""
        return [b for b in self.bookings if b.room_id == room_id]

    def bookings_for_user(self, user: User) -> list[Booking]:
        """Eigene Buchungen (Admins sehen alle), neueste Beginnzeit zuerst."""
        own = [b for b in self.bookings
               if user.is_admin or b.created_by_user_id == user.id]
        return sorted(own, key=lambda b: b.start_datetime, reverse=True)

    def agenda(self, room_id: str, day: date) -> list[Booking]:
        """Aktive Buchungen eines Raums an einem Tag, nach Beginn sortiert."""
        return sorted(
            (b for b in self.bookings
             if b.room_id == room_id and b.is_active
             and b.start_datetime.date() <= day <= b.end_datetime.date()),
            key=lambda b: b.start_datetime,
        )

    def upcoming_active(self, room_id: str, now: datetime) -> list[Booking]:
        """Aktive Buchungen eines Raums mit Beginn nach `now`."""
        return [b for b in self.bookings
                if b.room_id == room_id and b.is_active and b.start_datetime > now]

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datenbestand."""
        active = len(self.active_bookings())
        lines = [
            f"Räume: {len(self.rooms)} "
            f"({sum(1 for r in self.rooms if r.is_active)} aktiv)",
            f"Buchungen: {len(self.bookings)} "
            f"({active} aktiv, {len(self.bookings) - active} storniert)",
            f"Benutzer: {len(self.users)}",
            f"Audit-Einträge: {len(self.logs)}",
            f"Angemeldet: {self.current_user.name}" if self.current_user else "",
        ]
        return "\n".join(l for l in lines if l)
