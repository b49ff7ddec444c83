"""Audit-Log-Einträge (Pydantic v2). Einmal geschrieben, nie verändert."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class AuditAction(str, Enum):
    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_EDITED = "BOOKING_EDITED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    ROOM_CREATED = "ROOM_CREATED"
    ROOM_EDITED = "ROOM_EDITED"
    ROOM_DELETED = "ROOM_DELETED"
    CONFIG_UPDATED = "CONFIG_UPDATED"


class AuditEntry(BaseModel):
    """Ein Eintrag im Audit-Log."""

    model_config = ConfigDict(frozen=True)

    id: str
    action: AuditAction
    user_id: str          # Akteur
    timestamp: datetime
    details: str          # lesbarer Freitext
