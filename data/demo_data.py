"""Demo-Daten für Raumbuchungen.

Erzeugt zufällige, aber reproduzierbare Buchungen (Seed) für die nächsten
Tage. Alle Buchungen laufen über den BookingManager, damit Konfliktfreiheit,
Audit-Log und Validierung genau wie im Betrieb gelten. Kollidierende
Vorschläge werden verworfen.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from models.booking import BookingDraft, MeetingType
from scheduling.bookings import BookingManager
from scheduling.store import EntityStore

logger = logging.getLogger(__name__)

# ─── Vorlagen ─────────────────────────────────────────────────────────────────

_TITLES = [
    "Teammeeting", "Sprint Planning", "Retrospektive", "Kundentermin",
    "Bewerbungsgespräch", "Budgetrunde", "Onboarding", "Workshop",
    "Projekt-Kickoff", "Jour fixe", "Schulung", "Abteilungsrunde",
]

_PARTICIPANTS = [
    "Anna Krüger", "Ben Schmidt", "Clara Hoffmann", "David Meyer",
    "Eva Schneider", "Felix Wagner", "Greta Fischer", "Hannes Weber",
    "Ida Koch", "Jan Richter",
]

_CANCEL_REASONS = [
    "Termin verschoben", "Teilnehmer erkrankt", "Kunde hat abgesagt",
    "Raum wird anderweitig benötigt",
]

# Dauer in Minuten (gewichtet: kurze Termine sind häufiger)
_DURATIONS: list[tuple[int, int]] = [(30, 3), (60, 5), (90, 2), (120, 1)]


class DemoDataGenerator:
    """Füllt einen EntityStore mit Demo-Buchungen."""

    def __init__(self, store: EntityStore, seed: Optional[int] = None) -> None:
        self.store = store
        self.rng = random.Random(seed)
        self.manager = BookingManager(store)

    def _random_slot(self, day: datetime) -> tuple[datetime, datetime]:
        """Beginn im Halbstundenraster innerhalb der Öffnungszeiten."""
        config = self.store.config
        minutes = self.rng.choices(
            [d for d, _ in _DURATIONS], weights=[w for _, w in _DURATIONS])[0]
        open_min = config.opening.hour * 60 + config.opening.minute
        close_min = config.closing.hour * 60 + config.closing.minute
        latest = max(open_min, close_min - minutes)
        start_min = self.rng.randrange(open_min, latest + 1, 30)
        start = day.replace(hour=0, minute=0, second=0) + timedelta(minutes=start_min)
        return start, start + timedelta(minutes=minutes)

    def _draft(self, room_id: str, day: datetime) -> BookingDraft:
        start, end = self._random_slot(day)
        return BookingDraft(
            room_id=room_id,
            title=self.rng.choice(_TITLES),
            start_datetime=start,
            end_datetime=end,
            participants=self.rng.sample(_PARTICIPANTS, k=self.rng.randint(1, 5)),
            type=self.rng.choice(list(MeetingType)),
        )

    def generate(self, days: int = 5, per_day: int = 6,
                 cancel_ratio: float = 0.1) -> list[str]:
        """Legt bis zu days × per_day Buchungen ab morgen an.

        Die Buchungen werden reihum verschiedenen Benutzern zugeordnet; der
        zuvor angemeldete Benutzer ist danach wieder aktiv. Gibt die IDs
        der angelegten Buchungen zurück.
        """
        rooms = [r for r in self.store.rooms if r.is_active]
        users = self.store.users
        if not rooms or not users:
            logger.warning("Keine aktiven Räume oder Benutzer: keine Demo-Daten erzeugt")
            return []

        previous = self.store.current_user
        tomorrow = self.store.clock.now() + timedelta(days=1)
        created: list[str] = []
        rejected = 0
        try:
            for offset in range(days):
                day = tomorrow + timedelta(days=offset)
                for _ in range(per_day):
                    self.store.set_current_user(self.rng.choice(users).id)
                    result = self.manager.upsert_booking(
                        self._draft(self.rng.choice(rooms).id, day))
                    if result:
                        created.append(result.entity_id)
                    else:
                        rejected += 1

            for booking_id in created:
                if self.rng.random() < cancel_ratio:
                    self.manager.cancel_booking(booking_id, self.rng.choice(_CANCEL_REASONS))
        finally:
            self.store.set_current_user(previous.id if previous else None)

        logger.info(f"Demo-Daten: {len(created)} Buchungen angelegt, "
                    f"{rejected} Vorschläge verworfen")
        return created
