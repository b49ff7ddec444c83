"""Datenmodell für einen Besprechungsraum (Pydantic v2)."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Resource(str, Enum):
    """Ausstattungsmerkmale eines Raums."""

    TV = "TV"
    BEAMER = "Beamer"
    WHITEBOARD = "Whiteboard"
    VIDEOKONFERENZ = "Videokonferenz"
    KLIMAANLAGE = "Klimaanlage"
    KAFFEE_WASSER = "Kaffee/Wasser"


class Room(BaseModel):
    """Repräsentiert einen buchbaren Raum."""

    id: str                     # "r1", "rk3m9x2pq"
    name: str                   # "Raum Berlin"
    capacity: int = Field(gt=0)
    location: str = ""          # "3. OG - Block A"
    resources: list[Resource] = []
    is_active: bool = True
    color: str = "#3b82f6"      # Anzeige-Hinweis, fachlich ohne Bedeutung

    @field_validator("resources")
    @classmethod
    def _dedupe_resources(cls, v: list[Resource]) -> list[Resource]:
        # Ausstattung ist eine Menge; Reihenfolge der ersten Nennung bleibt
        return list(dict.fromkeys(v))

    @field_validator("color")
    @classmethod
    def _check_color(cls, v: str) -> str:
        h = v.lstrip("#")
        if len(h) != 6 or any(c not in "0123456789abcdefABCDEF" for c in h):
            raise ValueError(f"Ungültige Farbe '{v}' (erwartet #RRGGBB)")
        return f"#{h.lower()}"


class RoomDraft(BaseModel):
    """Eingabe für upsert_room. Ohne id: Neuanlage, mit id: Bearbeitung."""

    id: Optional[str] = None
    name: Optional[str] = None
    capacity: Optional[int] = None
    location: Optional[str] = None
    resources: Optional[list[Resource]] = None
    is_active: Optional[bool] = None
    color: Optional[str] = None

    def changes(self) -> dict:
        """Explizit gesetzte Felder ohne id."""
        return {k: getattr(self, k) for k in self.model_fields_set
                if k != "id" and getattr(self, k) is not None}
