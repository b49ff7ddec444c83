"""Raumbuchung — Haupt-CLI.

Verwendung:
  python main.py init [--demo]              Einstellungen + Datenbestand anlegen
  python main.py config show                Einstellungen und Richtlinien anzeigen
  python main.py config set KEY VALUE       Richtlinie ändern (Admin)
  python main.py user list                  Benutzer auflisten
  python main.py user switch ID             Angemeldeten Benutzer wechseln
  python main.py room list|add|edit|delete  Räume verwalten (Admin)
  python main.py booking list               Buchungen anzeigen
  python main.py booking create|edit|cancel Buchungen anlegen und ändern
  python main.py log                        Audit-Log anzeigen
  python main.py export csv|excel|pdf       Buchungen exportieren (Admin)
  python main.py report                     Auslastungsbericht (Admin)
  python main.py check                      Integritätsprüfung
"""

import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

_DATETIME_FORMATS = ["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%d.%m.%Y %H:%M"]
_DATE_FORMATS = ["%Y-%m-%d", "%d.%m.%Y"]


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def _setup_logging(level: str) -> None:
    from rich.logging import RichHandler
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _store(ctx: click.Context):
    """Öffnet den Datenbestand einmal pro Aufruf."""
    obj = ctx.ensure_object(dict)
    if "store" not in obj:
        from scheduling.exceptions import StorageError
        from scheduling.store import EntityStore, JsonDirectoryBackend
        try:
            obj["store"] = EntityStore(JsonDirectoryBackend(obj["data_dir"])).load()
        except StorageError as e:
            console.print(f"[red]Datenbestand nicht lesbar:[/red] {e}")
            sys.exit(1)
    return obj["store"]


def _require_user(store):
    user = store.current_user
    if user is None:
        console.print("[red]Niemand angemeldet.[/red] "
                      "Zuerst [bold]python main.py user switch ID[/bold] ausführen.")
        sys.exit(1)
    return user


def _require_admin(store):
    user = _require_user(store)
    if not user.is_admin:
        console.print(f"[red]Keine Berechtigung:[/red] {user.name} ist kein Administrator.")
        sys.exit(1)
    return user


def _require_owner(store, booking_id: str) -> None:
    """Nicht-Admins dürfen nur eigene Buchungen ändern."""
    user = _require_user(store)
    booking = store.snapshot.get_booking(booking_id)
    if booking is not None and not user.is_admin and booking.created_by_user_id != user.id:
        console.print(f"[red]Keine Berechtigung:[/red] Buchung {booking_id} gehört "
                      f"einem anderen Benutzer.")
        sys.exit(1)


def _report(result, message: str) -> None:
    """Gibt ein OperationResult aus; Fehler beenden mit Exit-Code 1."""
    if not result:
        console.print(f"[red]✗ {escape(result.error)}[/red]")
        sys.exit(1)
    console.print(f"[green]✓[/green] {message}")


def _split_list(raw: Optional[str]) -> Optional[list[str]]:
    """Zerlegt "A, B ,C" in ["A", "B", "C"]; leere Einträge entfallen."""
    if raw is None:
        return None
    return [p.strip() for p in raw.split(",") if p.strip()]


def _as_date(value: Optional[datetime]):
    return value.date() if value is not None else None


def _date_format(ctx: click.Context) -> str:
    return ctx.obj["settings"].date_format


# ─── INIT ─────────────────────────────────────────────────────────────────────

@click.command("init")
@click.option("--demo", is_flag=True, default=False, help="Demo-Buchungen erzeugen.")
@click.option("--seed", default=42, help="Zufalls-Seed für die Demo-Daten.")
@click.pass_context
def cmd_init(ctx, demo, seed):
    """Legt Einstellungsdatei und Datenbestand (mit Startdaten) an."""
    mgr = ctx.obj["manager"]
    if mgr.first_run_check():
        path = mgr.save(ctx.obj["settings"])
        console.print(f"[green]✓[/green] Einstellungen gespeichert: {path}")

    store = _store(ctx)
    store.persist()
    if demo:
        from data.demo_data import DemoDataGenerator
        created = DemoDataGenerator(store, seed=seed).generate()
        console.print(f"[green]✓[/green] {len(created)} Demo-Buchungen angelegt")

    console.print(Panel(store.snapshot.summary(), title="Datenbestand",
                        border_style="cyan"))


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Einstellungen und Buchungsrichtlinien."""


@cmd_config.command("show")
@click.pass_context
def config_show(ctx):
    """Zeigt lokale Einstellungen und Richtlinien an."""
    store = _store(ctx)
    ctx.obj["manager"].show(ctx.obj["settings"], store.config)


def _parse_policy_value(key: str, raw: str):
    from config.schema import AppConfig
    field = AppConfig.model_fields.get(key)
    if field is None:
        return raw
    if field.annotation is bool:
        value = raw.strip().lower()
        if value in ("1", "true", "ja", "yes", "on"):
            return True
        if value in ("0", "false", "nein", "no", "off"):
            return False
        raise click.BadParameter(f"'{raw}' ist kein Wahrheitswert (ja/nein)", param_hint=key)
    if field.annotation is int:
        try:
            return int(raw)
        except ValueError:
            raise click.BadParameter(f"'{raw}' ist keine ganze Zahl", param_hint=key)
    return raw.strip()


@cmd_config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx, key, value):
    """Ändert eine Buchungsrichtlinie, z.B. config set max_duration 3."""
    from scheduling.policy import PolicyManager
    store = _store(ctx)
    _require_admin(store)
    result = PolicyManager(store).update_config({key: _parse_policy_value(key, value)})
    _report(result, f"{key} = {getattr(store.config, key, value)}")


# ─── USER ─────────────────────────────────────────────────────────────────────

@click.group("user")
def cmd_user():
    """Benutzer anzeigen und wechseln."""


@cmd_user.command("list")
@click.pass_context
def user_list(ctx):
    """Listet alle Benutzer auf."""
    store = _store(ctx)
    current = store.current_user
    table = Table(title="Benutzer", box=box.ROUNDED)
    table.add_column("", width=1)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Name")
    table.add_column("E-Mail")
    table.add_column("Rolle")
    table.add_column("Abteilung")
    for u in store.users:
        marker = "[green]●[/green]" if current and current.id == u.id else ""
        table.add_row(marker, u.id, u.name, u.email, u.role.value, u.department or "")
    console.print(table)


@cmd_user.command("switch")
@click.argument("user_id", required=False)
@click.option("--logout", is_flag=True, default=False, help="Abmelden.")
@click.pass_context
def user_switch(ctx, user_id, logout):
    """Meldet einen anderen Benutzer an (oder ab mit --logout)."""
    from scheduling.exceptions import NotFoundError
    store = _store(ctx)
    if logout:
        store.set_current_user(None)
        console.print("[green]✓[/green] Abgemeldet")
        return
    if user_id is None:
        raise click.UsageError("Benutzer-ID oder --logout angeben.")
    try:
        user = store.set_current_user(user_id)
    except NotFoundError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        sys.exit(1)
    console.print(f"[green]✓[/green] Angemeldet als {user.name} ({user.role.value})")


# ─── ROOM ─────────────────────────────────────────────────────────────────────

def _resource_choice():
    from models.room import Resource
    return click.Choice([r.value for r in Resource])


@click.group("room")
def cmd_room():
    """Räume anzeigen und verwalten."""


@cmd_room.command("list")
@click.option("--all", "show_all", is_flag=True, default=False,
              help="Auch inaktive Räume anzeigen.")
@click.pass_context
def room_list(ctx, show_all):
    """Listet die Räume auf."""
    from scheduling.rooms import RoomManager
    store = _store(ctx)
    rooms = RoomManager(store).list_rooms(only_active=not show_all)
    if not rooms:
        console.print("[dim]Keine Räume vorhanden.[/dim]")
        return
    table = Table(title="Räume", box=box.ROUNDED)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Name")
    table.add_column("Plätze", justify="right")
    table.add_column("Ort")
    table.add_column("Ausstattung")
    table.add_column("Status")
    for r in rooms:
        table.add_row(
            r.id, f"[{r.color}]■[/] {r.name}", str(r.capacity), r.location,
            ", ".join(res.value for res in r.resources),
            "aktiv" if r.is_active else "[dim]inaktiv[/dim]",
        )
    console.print(table)


@cmd_room.command("add")
@click.option("--name", required=True)
@click.option("--capacity", required=True, type=int)
@click.option("--location", default="")
@click.option("--resource", "resources", multiple=True, type=_resource_choice(),
              help="Ausstattung (mehrfach angebbar).")
@click.option("--color", default=None, help="Anzeigefarbe, z.B. #10b981.")
@click.pass_context
def room_add(ctx, name, capacity, location, resources, color):
    """Legt einen neuen Raum an (Admin)."""
    from scheduling.rooms import RoomManager
    store = _store(ctx)
    _require_admin(store)
    draft = {"name": name, "capacity": capacity, "location": location,
             "resources": list(resources), "color": color}
    result = RoomManager(store).upsert_room({k: v for k, v in draft.items() if v is not None})
    _report(result, f"Raum {result.entity_id} angelegt")


@cmd_room.command("edit")
@click.argument("room_id")
@click.option("--name", default=None)
@click.option("--capacity", default=None, type=int)
@click.option("--location", default=None)
@click.option("--resource", "resources", multiple=True, type=_resource_choice())
@click.option("--color", default=None)
@click.option("--active/--inactive", "is_active", default=None,
              help="Raum für neue Buchungen freigeben oder sperren.")
@click.pass_context
def room_edit(ctx, room_id, name, capacity, location, resources, color, is_active):
    """Ändert einen Raum; nur angegebene Felder werden übernommen (Admin)."""
    from scheduling.rooms import RoomManager
    store = _store(ctx)
    _require_admin(store)
    draft = {"id": room_id, "name": name, "capacity": capacity, "location": location,
             "resources": list(resources) or None, "color": color, "is_active": is_active}
    result = RoomManager(store).upsert_room({k: v for k, v in draft.items() if v is not None})
    _report(result, f"Raum {room_id} aktualisiert")


@cmd_room.command("delete")
@click.argument("room_id")
@click.pass_context
def room_delete(ctx, room_id):
    """Löscht einen Raum ohne anstehende Buchungen (Admin)."""
    from scheduling.rooms import RoomManager
    store = _store(ctx)
    _require_admin(store)
    _report(RoomManager(store).delete_room(room_id), f"Raum {room_id} gelöscht")


# ─── BOOKING ──────────────────────────────────────────────────────────────────

def _meeting_type_choice():
    from models.booking import MeetingType
    return click.Choice([t.value for t in MeetingType])


@click.group("booking")
def cmd_booking():
    """Buchungen anzeigen, anlegen, bearbeiten und stornieren."""


@cmd_booking.command("list")
@click.option("--room", "room_id", default=None, help="Nur Buchungen dieses Raums.")
@click.option("--mine", is_flag=True, default=False, help="Nur eigene Buchungen.")
@click.option("--active-only", is_flag=True, default=False, help="Stornierte ausblenden.")
@click.option("--date", "day", default=None, type=click.DateTime(formats=_DATE_FORMATS),
              help="Tagesansicht (nur mit --room).")
@click.pass_context
def booking_list(ctx, room_id, mine, active_only, day):
    """Listet Buchungen auf."""
    from export.helpers import STATUS_LABELS, format_time_range, room_label, room_lookup
    from scheduling.bookings import BookingManager
    store = _store(ctx)
    manager = BookingManager(store)
    snapshot = store.snapshot

    if day is not None and room_id:
        bookings = snapshot.agenda(room_id, day.date())
    elif mine:
        _require_user(store)
        bookings = manager.my_bookings()
    else:
        bookings = manager.list_bookings(room_id)
    if active_only:
        bookings = [b for b in bookings if b.is_active]

    if not bookings:
        console.print("[dim]Keine Buchungen gefunden.[/dim]")
        return

    rooms = room_lookup(snapshot.rooms)
    fmt = _date_format(ctx)
    table = Table(title="Buchungen", box=box.ROUNDED)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Datum")
    table.add_column("Zeit")
    table.add_column("Raum")
    table.add_column("Titel")
    table.add_column("Typ")
    table.add_column("Status")
    for b in bookings:
        status = STATUS_LABELS[b.status]
        if not b.is_active:
            status = f"[dim]{status}: {b.cancel_reason}[/dim]"
        table.add_row(
            b.id, b.start_datetime.strftime(fmt),
            format_time_range(b.start_datetime, b.end_datetime),
            room_label(b.room_id, rooms), b.title, b.type.value, status,
        )
    console.print(table)


@cmd_booking.command("create")
@click.option("--room", "room_id", required=True)
@click.option("--title", required=True)
@click.option("--start", required=True, type=click.DateTime(formats=_DATETIME_FORMATS))
@click.option("--end", default=None, type=click.DateTime(formats=_DATETIME_FORMATS),
              help="Ohne Angabe gilt die Standarddauer der Richtlinien.")
@click.option("--participants", default=None, help='Kommagetrennt, z.B. "Anna, Ben".')
@click.option("--type", "meeting_type", default=None, type=_meeting_type_choice())
@click.option("--resource", "resources", multiple=True, type=_resource_choice())
@click.option("--description", default=None)
@click.option("--recurring", is_flag=True, default=False, help="Als Serie markieren.")
@click.pass_context
def booking_create(ctx, room_id, title, start, end, participants, meeting_type,
                   resources, description, recurring):
    """Legt eine neue Buchung an."""
    from scheduling.bookings import BookingManager
    store = _store(ctx)
    _require_user(store)
    if end is None:
        end = start + timedelta(minutes=store.config.default_duration)
    draft = {
        "room_id": room_id, "title": title, "start_datetime": start,
        "end_datetime": end, "participants": _split_list(participants),
        "type": meeting_type, "resources_requested": list(resources) or None,
        "description": description, "is_recurring": recurring,
    }
    result = BookingManager(store).upsert_booking(
        {k: v for k, v in draft.items() if v is not None})
    _report(result, f"Buchung {result.entity_id} angelegt")


@cmd_booking.command("edit")
@click.argument("booking_id")
@click.option("--room", "room_id", default=None)
@click.option("--title", default=None)
@click.option("--start", default=None, type=click.DateTime(formats=_DATETIME_FORMATS))
@click.option("--end", default=None, type=click.DateTime(formats=_DATETIME_FORMATS))
@click.option("--participants", default=None)
@click.option("--type", "meeting_type", default=None, type=_meeting_type_choice())
@click.option("--description", default=None)
@click.pass_context
def booking_edit(ctx, booking_id, room_id, title, start, end, participants,
                 meeting_type, description):
    """Bearbeitet eine Buchung; nur angegebene Felder werden geändert."""
    from scheduling.bookings import BookingManager
    store = _store(ctx)
    _require_owner(store, booking_id)
    draft = {
        "id": booking_id, "room_id": room_id, "title": title,
        "start_datetime": start, "end_datetime": end,
        "participants": _split_list(participants), "type": meeting_type,
        "description": description,
    }
    result = BookingManager(store).upsert_booking(
        {k: v for k, v in draft.items() if v is not None})
    _report(result, f"Buchung {booking_id} aktualisiert")


@cmd_booking.command("cancel")
@click.argument("booking_id")
@click.option("--reason", prompt="Stornogrund", help="Pflichtangabe.")
@click.pass_context
def booking_cancel(ctx, booking_id, reason):
    """Storniert eine Buchung (nicht umkehrbar)."""
    from scheduling.bookings import BookingManager
    store = _store(ctx)
    _require_owner(store, booking_id)
    _report(BookingManager(store).cancel_booking(booking_id, reason),
            f"Buchung {booking_id} storniert")


# ─── LOG ──────────────────────────────────────────────────────────────────────

@click.command("log")
@click.option("--limit", default=20, show_default=True, help="Anzahl Einträge.")
@click.pass_context
def cmd_log(ctx, limit):
    """Zeigt die neuesten Audit-Einträge."""
    store = _store(ctx)
    logs = store.logs[:limit]
    if not logs:
        console.print("[dim]Audit-Log ist leer.[/dim]")
        return
    users = {u.id: u.name for u in store.users}
    table = Table(title="Audit-Log", box=box.ROUNDED)
    table.add_column("Zeitpunkt")
    table.add_column("Aktion", style="bold", no_wrap=True)
    table.add_column("Benutzer")
    table.add_column("Details")
    for entry in logs:
        table.add_row(
            entry.timestamp.strftime(f"{_date_format(ctx)} %H:%M:%S"),
            entry.action.value, users.get(entry.user_id, entry.user_id), entry.details,
        )
    console.print(table)


# ─── EXPORT ───────────────────────────────────────────────────────────────────

_range_options = [
    click.option("--from", "date_from", default=None,
                 type=click.DateTime(formats=_DATE_FORMATS), help="Erster Tag."),
    click.option("--to", "date_to", default=None,
                 type=click.DateTime(formats=_DATE_FORMATS), help="Letzter Tag."),
]


def _with_range(func):
    for option in reversed(_range_options):
        func = option(func)
    return func


@click.group("export")
def cmd_export():
    """Buchungen exportieren (Admin)."""


@cmd_export.command("csv")
@click.option("--out", default="output/buchungen.csv", show_default=True)
@_with_range
@click.pass_context
def export_csv(ctx, out, date_from, date_to):
    """CSV mit allen Buchungen (Trennzeichen ;)."""
    from export.csv_export import export_bookings_csv
    from export.helpers import bookings_in_range
    store = _store(ctx)
    _require_admin(store)
    snapshot = store.snapshot
    bookings = bookings_in_range(snapshot.bookings, _as_date(date_from), _as_date(date_to))
    path = export_bookings_csv(bookings, snapshot.rooms, Path(out))
    console.print(f"[green]✓[/green] CSV: {path} ({len(bookings)} Buchungen)")


@cmd_export.command("excel")
@click.option("--out", default="output/buchungen.xlsx", show_default=True)
@click.option("--with-report", is_flag=True, default=False,
              help="Blatt mit Auslastungsbericht anhängen.")
@_with_range
@click.pass_context
def export_excel(ctx, out, with_report, date_from, date_to):
    """Excel-Arbeitsmappe: Übersicht und ein Blatt pro Raum."""
    from analysis.utilization import UtilizationAnalyzer
    from export.excel_export import ExcelExporter
    store = _store(ctx)
    _require_admin(store)
    snapshot = store.snapshot
    start, end = _as_date(date_from), _as_date(date_to)
    report = UtilizationAnalyzer(snapshot).analyze(start, end) if with_report else None
    path = ExcelExporter(snapshot, _date_format(ctx)).export(Path(out), report, start, end)
    console.print(f"[green]✓[/green] Excel: {path}")


@cmd_export.command("pdf")
@click.option("--out", default="output/raumbelegung.pdf", show_default=True)
@click.option("--room", "room_ids", multiple=True, help="Nur diese Räume.")
@_with_range
@click.pass_context
def export_pdf(ctx, out, room_ids, date_from, date_to):
    """PDF-Belegungsplan, eine Seite pro Raum."""
    from export.pdf_export import PdfExporter
    store = _store(ctx)
    _require_admin(store)
    path = PdfExporter(store.snapshot, _date_format(ctx)).export_room_agendas(
        Path(out), _as_date(date_from), _as_date(date_to), list(room_ids) or None)
    console.print(f"[green]✓[/green] PDF: {path}")


# ─── REPORT / CHECK ───────────────────────────────────────────────────────────

@click.command("report")
@_with_range
@click.pass_context
def cmd_report(ctx, date_from, date_to):
    """Auslastungsbericht (Admin)."""
    from analysis.utilization import UtilizationAnalyzer
    store = _store(ctx)
    _require_admin(store)
    UtilizationAnalyzer(store.snapshot).analyze(
        _as_date(date_from), _as_date(date_to)).print_rich()


@click.command("check")
@click.pass_context
def cmd_check(ctx):
    """Prüft den Datenbestand auf Regelverletzungen."""
    from analysis.integrity import IntegrityChecker
    report = IntegrityChecker().check(_store(ctx).snapshot)
    report.print_rich()
    sys.exit(0 if report.is_valid else 1)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--settings", "settings_path", default=None, type=click.Path(path_type=Path),
              help="Pfad zur Einstellungsdatei (Standard: config/settings.yaml).")
@click.option("--data-dir", default=None, type=click.Path(path_type=Path),
              help="Verzeichnis des Datenbestands (überschreibt die Einstellungen).")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Ausführliches Logging.")
@click.pass_context
def cli(ctx, settings_path, data_dir, verbose):
    """Raumbuchung: Besprechungsräume buchen und verwalten.

    Starten Sie mit: python main.py init
    """
    from config.manager import ConfigManager
    mgr = ConfigManager(settings_path)
    try:
        settings = mgr.load()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    _setup_logging("DEBUG" if verbose else settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["manager"] = mgr
    ctx.obj["settings"] = settings
    ctx.obj["data_dir"] = data_dir or settings.data_dir


def main():
    """Einstiegspunkt."""
    cli(obj={})


# Befehle registrieren
cli.add_command(cmd_init)
cli.add_command(cmd_config)
cli.add_command(cmd_user)
cli.add_command(cmd_room)
cli.add_command(cmd_booking)
cli.add_command(cmd_log)
cli.add_command(cmd_export)
cli.add_command(cmd_report)
cli.add_command(cmd_check)


if __name__ == "__main__":
    main()
