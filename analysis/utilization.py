"""Auslastungsbericht für Räume und Buchungen.

Berechnet die Kennzahlen des Dashboards: aktive und stornierte Buchungen,
betroffene Personen, gebuchte Stunden, Auslastung pro Raum gemessen an den
Öffnungszeiten und Buchungen pro Abteilung.
"""

from collections import defaultdict
from datetime import date
from typing import Optional

from pydantic import BaseModel

from models.snapshot import StoreSnapshot
from export.helpers import bookings_in_range

NO_DEPARTMENT = "ohne Abteilung"


# ─── Metriken-Modelle ─────────────────────────────────────────────────────────

class RoomUtilization(BaseModel):
    """Kennzahlen für einen einzelnen Raum."""

    room_id: str
    name: str
    is_active: bool
    active_bookings: int
    booked_hours: float
    occupancy_rate: float   # 0.0–1.0 bezogen auf Öffnungsstunden im Zeitraum


class UtilizationReport(BaseModel):
    """Vollständiger Auslastungsbericht für einen Zeitraum."""

    period_start: Optional[date]
    period_end: Optional[date]
    total_active: int
    total_cancelled: int
    people_impacted: int
    booked_hours: float
    cancellation_rate: float
    room_metrics: list[RoomUtilization]
    department_counts: dict[str, int]

    def print_rich(self) -> None:
        """Gibt den Bericht formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        period = (
            f"{self.period_start:%d.%m.%Y} – {self.period_end:%d.%m.%Y}"
            if self.period_start and self.period_end else "kein Zeitraum"
        )
        lines = [
            f"[bold]Zeitraum:[/bold] {period}",
            f"[bold]Aktive Buchungen:[/bold] {self.total_active}",
            f"[bold]Betroffene Personen:[/bold] {self.people_impacted}",
            f"[bold]Gebuchte Stunden:[/bold] {self.booked_hours:.1f}h",
            f"[bold]Stornierungen:[/bold] {self.total_cancelled} "
            f"({self.cancellation_rate:.0%})",
        ]
        console.print(Panel("\n".join(lines), title="Auslastung", border_style="cyan"))

        table = Table(title="Belegung pro Raum", box=box.ROUNDED)
        table.add_column("Raum", style="bold")
        table.add_column("Buchungen", justify="right")
        table.add_column("Stunden", justify="right")
        table.add_column("Auslastung", justify="right")
        for m in self.room_metrics:
            name = m.name if m.is_active else f"{m.name} [dim](inaktiv)[/dim]"
            table.add_row(name, str(m.active_bookings),
                          f"{m.booked_hours:.1f}", f"{m.occupancy_rate:.0%}")
        console.print(table)

        if self.department_counts:
            t2 = Table(title="Buchungen pro Abteilung", box=box.SIMPLE)
            t2.add_column("Abteilung")
            t2.add_column("Buchungen", justify="right")
            for dept, n in self.department_counts.items():
                t2.add_row(dept, str(n))
            console.print(t2)


# ─── Analyzer ─────────────────────────────────────────────────────────────────

class UtilizationAnalyzer:
    """Berechnet einen UtilizationReport aus einem StoreSnapshot."""

    def __init__(self, snapshot: StoreSnapshot):
        self.data = snapshot

    def analyze(self, start: Optional[date] = None,
                end: Optional[date] = None) -> UtilizationReport:
        """Wertet alle Buchungen mit Beginn in [start, end] aus.

        Ohne Zeitraum wird er aus der ersten und letzten aktiven Buchung
        abgeleitet.
        """
        selected = bookings_in_range(self.data.bookings, start, end)
        active = [b for b in selected if b.is_active]
        cancelled = [b for b in selected if not b.is_active]

        if active and (start is None or end is None):
            days = [b.start_datetime.date() for b in active]
            start = start or min(days)
            end = end or max(days)
        period_days = max((end - start).days + 1, 0) if start and end else 0
        capacity_hours = period_days * self.data.config.opening_hours_per_day

        hours_by_room: dict[str, float] = defaultdict(float)
        count_by_room: dict[str, int] = defaultdict(int)
        for b in active:
            hours_by_room[b.room_id] += b.duration_hours
            count_by_room[b.room_id] += 1

        room_metrics = [
            RoomUtilization(
                room_id=r.id,
                name=r.name,
                is_active=r.is_active,
                active_bookings=count_by_room[r.id],
                booked_hours=round(hours_by_room[r.id], 2),
                occupancy_rate=(
                    round(hours_by_room[r.id] / capacity_hours, 4)
                    if capacity_hours else 0.0
                ),
            )
            for r in self.data.rooms
        ]
        room_metrics.sort(key=lambda m: m.active_bookings, reverse=True)

        departments: dict[str, int] = defaultdict(int)
        for b in active:
            user = self.data.get_user(b.created_by_user_id)
            dept = user.department if user and user.department else NO_DEPARTMENT
            departments[dept] += 1

        total = len(selected)
        return UtilizationReport(
            period_start=start,
            period_end=end,
            total_active=len(active),
            total_cancelled=len(cancelled),
            people_impacted=sum(len(b.participants) or 1 for b in active),
            booked_hours=round(sum(b.duration_hours for b in active), 2),
            cancellation_rate=round(len(cancelled) / total, 4) if total else 0.0,
            room_metrics=room_metrics,
            department_counts=dict(sorted(departments.items(), key=lambda kv: -kv[1])),
        )
