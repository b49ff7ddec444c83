"""Datenmodell für eine Raumbuchung (Pydantic v2)."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, NaiveDatetime, model_validator

from models.room import Resource


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class MeetingType(str, Enum):
    IN_PERSON = "in-person"
    ONLINE = "online"
    HYBRID = "hybrid"


class Booking(BaseModel):
    """Eine Reservierung eines Raums für ein halboffenes Intervall [start, end).

    Zeitpunkte sind lokale Wanduhrzeiten ohne Zeitzone.
    """

    id: str
    room_id: str                               # weiche Referenz auf Room.id
    title: str
    description: str = ""
    start_datetime: NaiveDatetime
    end_datetime: NaiveDatetime
    created_by_user_id: str                    # nach dem Anlegen unveränderlich
    participants: list[str] = []               # Reihenfolge wie eingegeben
    resources_requested: list[Resource] = []   # nicht gegen Raum-Ausstattung geprüft
    status: BookingStatus = BookingStatus.ACTIVE
    cancel_reason: Optional[str] = None
    type: MeetingType = MeetingType.IN_PERSON
    created_at: datetime
    updated_at: datetime
    is_recurring: bool = False                 # nur informativ, keine Serienauflösung

    @model_validator(mode='after')
    def _check_invariants(self):
        if self.end_datetime <= self.start_datetime:
            raise ValueError(
                f"Ende ({self.end_datetime:%H:%M}) muss nach dem Beginn "
                f"({self.start_datetime:%H:%M}) liegen."
            )
        if self.status == BookingStatus.CANCELLED and not self.cancel_reason:
            raise ValueError("Stornierte Buchungen benötigen einen Stornogrund.")
        if self.status == BookingStatus.ACTIVE and self.cancel_reason is not None:
            raise ValueError("Aktive Buchungen dürfen keinen Stornogrund tragen.")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.ACTIVE

    @property
    def duration_hours(self) -> float:
        """Dauer in Stunden."""
        return (self.end_datetime - self.start_datetime).total_seconds() / 3600

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Halboffene Überlappung: Randberührung (Ende == Beginn) zählt nicht."""
        return start < self.end_datetime and end > self.start_datetime


class BookingDraft(BaseModel):
    """Eingabe für upsert_booking. Ohne id: Neuanlage, mit id: Bearbeitung.

    Beim Bearbeiten werden nur die tatsächlich gesetzten Felder übernommen
    (model_fields_set).
    """

    id: Optional[str] = None
    room_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    start_datetime: Optional[NaiveDatetime] = None
    end_datetime: Optional[NaiveDatetime] = None
    participants: Optional[list[str]] = None
    resources_requested: Optional[list[Resource]] = None
    type: Optional[MeetingType] = None
    is_recurring: Optional[bool] = None

    def changes(self) -> dict:
        """Explizit gesetzte Felder ohne id."""
        return {k: getattr(self, k) for k in self.model_fields_set
                if k != "id" and getattr(self, k) is not None}
