from datetime import datetime, time

from config.schema import AppConfig
from models.room import Resource, Room
from models.user import User, UserRole
from models.booking import Booking, MeetingType


ALL_RESOURCES: list[Resource] = list(Resource)


def default_app_config() -> AppConfig:
    """Standard-Richtlinien.

    Buchungszeit 07:00 - 20:00, Standarddauer 60 min, Vorlauf 15 min,
    maximal 4 Stunden am Stück, Serien erlaubt. Durchgesetzt werden die
    Richtlinien erst mit enforce_policy=True.
    """
    return AppConfig(
        opening_time="07:00",
        closing_time="20:00",
        default_duration=60,
        min_advance_time=15,
        max_duration=4,
        allow_recurring=True,
    )


def default_users() -> list[User]:
    """Startbenutzer: ein Administrator, zwei Mitarbeitende."""
    return [
        User(id="u1", name="Admin Schulze", email="admin@firma.de",
             role=UserRole.ADMIN, department="IT"),
        User(id="u2", name="Jonas Becker", email="jonas@firma.de",
             role=UserRole.USER, department="Marketing"),
        User(id="u3", name="Maria Wolf", email="maria@firma.de",
             role=UserRole.USER, department="Personal"),
    ]


def default_rooms() -> list[Room]:
    """Startbestand an Räumen."""
    return [
        Room(id="r1", name="Raum Berlin", capacity=12, location="3. OG - Block A",
             resources=[Resource.TV, Resource.VIDEOKONFERENZ, Resource.KLIMAANLAGE],
             color="#3b82f6"),
        Room(id="r2", name="Raum Hamburg", capacity=6, location="2. OG - Block B",
             resources=[Resource.BEAMER, Resource.WHITEBOARD],
             color="#10b981"),
        Room(id="r3", name="Großer Saal", capacity=50, location="EG",
             resources=ALL_RESOURCES, color="#f59e0b"),
    ]


def default_bookings(now: datetime) -> list[Booking]:
    """Zwei Beispielbuchungen am Tag von `now`."""
    today = now.date()
    return [
        Booking(
            id="b1", room_id="r1", title="Daily IT",
            description="Tägliche Abstimmung des Entwicklungsteams.",
            start_datetime=datetime.combine(today, time(9, 0)),
            end_datetime=datetime.combine(today, time(10, 0)),
            created_by_user_id="u1",
            participants=["admin@firma.de", "dev1@firma.de"],
            resources_requested=[Resource.TV],
            type=MeetingType.IN_PERSON,
            created_at=now, updated_at=now,
        ),
        Booking(
            id="b2", room_id="r2", title="Bewerbungsgespräche",
            description="Auswahlverfahren Nachwuchs.",
            start_datetime=datetime.combine(today, time(14, 0)),
            end_datetime=datetime.combine(today, time(15, 30)),
            created_by_user_id="u3",
            participants=["maria@firma.de", "kandidat@mail.de"],
            resources_requested=[Resource.WHITEBOARD],
            type=MeetingType.HYBRID,
            created_at=now, updated_at=now,
        ),
    ]
