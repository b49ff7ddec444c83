"""Fehlerklassen der Buchungslogik.

Die Lifecycle-Manager werfen intern diese Ausnahmen und übersetzen sie an
ihrer öffentlichen Schnittstelle in ein OperationResult. Nur StorageError
wird nicht übersetzt und bricht den Aufruf ab.
"""


class BookingSystemError(Exception):
    """Basisklasse aller fachlichen Fehler."""


class ValidationError(BookingSystemError):
    """Unvollständige oder ungültige Eingabe (Pflichtfeld fehlt, Ende <= Beginn, Vergangenheit)."""


class ConflictError(BookingSystemError):
    """Zeitüberschneidung mit einer aktiven Buchung im selben Raum."""

    def __init__(self, booking):
        self.booking = booking
        start = booking.start_datetime.strftime("%H:%M")
        end = booking.end_datetime.strftime("%H:%M")
        super().__init__(f'Zeitkonflikt mit: "{booking.title}" ({start}–{end})')


class UnauthenticatedError(BookingSystemError):
    """Kein angemeldeter Benutzer vorhanden."""

    def __init__(self, message: str = "Benutzer nicht angemeldet."):
        super().__init__(message)


class DeletionGuardError(BookingSystemError):
    """Raum hat noch aktive zukünftige Buchungen."""

    def __init__(self, room_id: str, pending: int):
        self.room_id = room_id
        self.pending = pending
        super().__init__(
            f"Raum {room_id} hat noch {pending} aktive zukünftige Buchung(en) "
            f"und kann nicht gelöscht werden. Deaktivieren Sie den Raum stattdessen."
        )


class NotFoundError(BookingSystemError):
    """Eine referenzierte ID existiert nicht."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} nicht gefunden.")


class StorageError(Exception):
    """Der dauerhafte Speicher ist nicht erreichbar. Kein fachlicher Fehler."""
