"""Audit Logger: unveränderliche Protokolleinträge für jede Änderung."""

import logging

from models.audit import AuditAction, AuditEntry
from models.snapshot import StoreSnapshot

logger = logging.getLogger(__name__)


class AuditLogger:
    """Hängt Einträge an den Kopf des Logs (neueste zuerst).

    Schreibt nur innerhalb einer laufenden Store-Transaktion; das Log wird
    nie geändert oder gekürzt.
    """

    def __init__(self, store):
        self.store = store

    def record(self, data: StoreSnapshot, action: AuditAction,
               actor_id: str, details: str) -> AuditEntry:
        if not actor_id:
            raise ValueError("Audit-Einträge benötigen einen Akteur.")
        entry = AuditEntry(
            id=self.store.new_id("l", {e.id for e in data.logs}),
            action=action,
            user_id=actor_id,
            timestamp=self.store.clock.now(),
            details=details,
        )
        data.logs.insert(0, entry)
        logger.info(f"Audit {action.value} von {actor_id}: {details}")
        return entry
