"""Integritätsprüfung eines geladenen Datenbestands.

Prüft den Stand unabhängig von den Lifecycle-Managern als Sicherheitsnetz.
Ende > Beginn und Stornogrund-Regel sichert bereits das Booking-Modell
beim Laden; hier kommen die sammlungsübergreifenden Regeln hinzu.
"""

from collections import Counter
from typing import Literal

from pydantic import BaseModel

from models.snapshot import StoreSnapshot
from scheduling.conflicts import find_all_conflicts
from export.helpers import format_time_range


class IntegrityViolation(BaseModel):
    """Eine einzelne Regelverletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "room_double_booking"
    description: str
    entity: str          # booking_id / room_id / log_id


class IntegrityReport(BaseModel):
    """Ergebnis der Integritätsprüfung."""

    violations: list[IntegrityViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ KONSISTENT[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(errors)} | Warnungen: {len(warnings)}"]
        console.print(Panel("\n".join(lines), title="Integritätsprüfung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Regel", width=24)
        table.add_column("Entität", width=12)
        table.add_column("Beschreibung")
        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class IntegrityChecker:
    """Prüft einen StoreSnapshot auf Verletzungen der Datenregeln."""

    def check(self, data: StoreSnapshot) -> IntegrityReport:
        violations: list[IntegrityViolation] = []

        violations.extend(self._check_duplicate_ids(data))
        violations.extend(self._check_room_double_booking(data))
        violations.extend(self._check_dangling_references(data))
        violations.extend(self._check_log_order(data))

        has_errors = any(v.severity == "error" for v in violations)
        return IntegrityReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_duplicate_ids(self, data: StoreSnapshot) -> list[IntegrityViolation]:
        violations: list[IntegrityViolation] = []
        for kind, ids in (
            ("room", [r.id for r in data.rooms]),
            ("booking", [b.id for b in data.bookings]),
            ("user", [u.id for u in data.users]),
            ("log", [e.id for e in data.logs]),
        ):
            for dup, n in Counter(ids).items():
                if n > 1:
                    violations.append(IntegrityViolation(
                        severity="error",
                        constraint=f"duplicate_{kind}_id",
                        entity=dup,
                        description=f"ID kommt {n}-mal vor.",
                    ))
        return violations

    def _check_room_double_booking(self, data: StoreSnapshot) -> list[IntegrityViolation]:
        """Keine zwei aktiven Buchungen im selben Raum dürfen sich überlappen."""
        return [
            IntegrityViolation(
                severity="error",
                constraint="room_double_booking",
                entity=first.id,
                description=(
                    f"Überschneidung mit {second.id} in Raum {first.room_id}: "
                    f"{format_time_range(first.start_datetime, first.end_datetime)} / "
                    f"{format_time_range(second.start_datetime, second.end_datetime)} "
                    f"am {first.start_datetime:%d.%m.%Y}"
                ),
            )
            for first, second in find_all_conflicts(data.bookings)
        ]

    def _check_dangling_references(self, data: StoreSnapshot) -> list[IntegrityViolation]:
        """Weiche Referenzen ohne Ziel sind erlaubt, werden aber gemeldet."""
        violations: list[IntegrityViolation] = []
        room_ids = {r.id for r in data.rooms}
        user_ids = {u.id for u in data.users}
        for b in data.bookings:
            if b.room_id not in room_ids:
                violations.append(IntegrityViolation(
                    severity="warning",
                    constraint="deleted_room_reference",
                    entity=b.id,
                    description=f"Raum {b.room_id} existiert nicht mehr.",
                ))
            if b.created_by_user_id not in user_ids:
                violations.append(IntegrityViolation(
                    severity="warning",
                    constraint="unknown_creator",
                    entity=b.id,
                    description=f"Benutzer {b.created_by_user_id} unbekannt.",
                ))
        return violations

    def _check_log_order(self, data: StoreSnapshot) -> list[IntegrityViolation]:
        """Audit-Log ist neueste-zuerst sortiert."""
        violations: list[IntegrityViolation] = []
        for newer, older in zip(data.logs, data.logs[1:]):
            if newer.timestamp < older.timestamp:
                violations.append(IntegrityViolation(
                    severity="warning",
                    constraint="audit_log_order",
                    entity=newer.id,
                    description=f"Eintrag ist älter als der folgende Eintrag {older.id}.",
                ))
        return violations
