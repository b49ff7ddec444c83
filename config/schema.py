from datetime import time
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


def parse_hhmm(value: str) -> time:
    """Wandelt "HH:MM" in ein time-Objekt um."""
    hours, _, minutes = value.partition(":")
    return time(int(hours), int(minutes))


# ─── RICHTLINIEN (im Datenbestand gespeichert) ───

class AppConfig(BaseModel):
    """Globale Buchungsrichtlinien.

    Ohne enforce_policy gelten nur die Grundregeln (Ende nach Beginn,
    keine Buchung in der Vergangenheit). Mit enforce_policy werden
    zusätzlich Öffnungszeiten, Vorlaufzeit, Maximaldauer und das
    Serien-Flag geprüft.
    """
    # Öffnungszeit im Format "HH:MM"
    opening_time: str = Field("07:00", pattern=r"^\d{2}:\d{2}$",
        description="Beginn der Buchungszeit")
    # Schließzeit im Format "HH:MM"
    closing_time: str = Field("20:00", pattern=r"^\d{2}:\d{2}$",
        description="Ende der Buchungszeit")
    # Vorgeschlagene Dauer neuer Buchungen in Minuten
    default_duration: int = Field(60, gt=0, le=24 * 60,
        description="Standarddauer (Minuten)")
    # Mindestvorlauf einer Buchung in Minuten
    min_advance_time: int = Field(15, ge=0,
        description="Mindestvorlauf (Minuten)")
    # Maximale Dauer einer Buchung in Stunden
    max_duration: int = Field(4, gt=0, le=24,
        description="Maximale Dauer (Stunden)")
    # Serienbuchungen erlaubt (rein informativ, keine Auflösung)
    allow_recurring: bool = Field(True,
        description="Serienbuchungen erlaubt")
    # Richtlinien bei der Validierung durchsetzen
    enforce_policy: bool = Field(False,
        description="Öffnungszeiten/Vorlauf/Maximaldauer prüfen")

    @field_validator("opening_time", "closing_time")
    @classmethod
    def _check_clock(cls, v: str) -> str:
        try:
            parse_hhmm(v)
        except ValueError as e:
            raise ValueError(f"Ungültige Uhrzeit '{v}'") from e
        return v

    @model_validator(mode='after')
    def _check_opening_hours(self):
        if parse_hhmm(self.opening_time) >= parse_hhmm(self.closing_time):
            raise ValueError(
                f"Öffnungszeit {self.opening_time} muss vor "
                f"Schließzeit {self.closing_time} liegen")
        return self

    @property
    def opening(self) -> time:
        return parse_hhmm(self.opening_time)

    @property
    def closing(self) -> time:
        return parse_hhmm(self.closing_time)

    @property
    def opening_hours_per_day(self) -> float:
        """Buchbare Stunden pro Tag."""
        o, c = self.opening, self.closing
        return (c.hour * 60 + c.minute - o.hour * 60 - o.minute) / 60


# ─── LOKALE EINSTELLUNGEN (YAML) ───

class Settings(BaseModel):
    """Lokale Einstellungen der Kommandozeile."""
    # Verzeichnis des JSON-Datenbestands (eine Datei pro Sammlung)
    data_dir: Path = Field(Path("data_store"),
        description="Verzeichnis des Datenbestands")
    # Log-Level für die Konsole
    log_level: str = Field("WARNING",
        description="Log-Level (DEBUG, INFO, WARNING, ERROR)")
    # Datumsformat für Tabellen
    date_format: str = Field("%d.%m.%Y",
        description="Datumsformat für Anzeige")

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unbekanntes Log-Level '{v}'")
        return v
