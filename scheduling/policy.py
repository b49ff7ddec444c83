"""Änderung der Buchungsrichtlinien (AppConfig im Datenbestand)."""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from config.schema import AppConfig
from models.audit import AuditAction
from scheduling.audit import AuditLogger
from scheduling.exceptions import UnauthenticatedError, ValidationError
from scheduling.result import as_result
from scheduling.store import EntityStore

logger = logging.getLogger(__name__)


class PolicyManager:
    def __init__(self, store: EntityStore, audit: Optional[AuditLogger] = None):
        self.store = store
        self.audit = audit or AuditLogger(store)

    @as_result
    def update_config(self, changes: dict) -> Optional[str]:
        """Übernimmt geänderte Richtlinienwerte (vollständig neu validiert)."""
        with self.store.transaction() as data:
            actor = data.current_user
            if actor is None:
                raise UnauthenticatedError()
            unknown = set(changes) - set(AppConfig.model_fields)
            if unknown:
                raise ValidationError(f"Unbekannte Einstellung(en): {', '.join(sorted(unknown))}")
            try:
                updated = AppConfig.model_validate({**data.config.model_dump(), **changes})
            except PydanticValidationError as e:
                messages = "; ".join(err["msg"] for err in e.errors())
                raise ValidationError(f"Ungültige Richtlinie: {messages}") from e

            diff = [
                f"{k}: {getattr(data.config, k)} → {getattr(updated, k)}"
                for k in AppConfig.model_fields
                if getattr(data.config, k) != getattr(updated, k)
            ]
            data.config = updated
            self.audit.record(data, AuditAction.CONFIG_UPDATED, actor.id,
                              "Richtlinien geändert: " + (", ".join(diff) or "keine Änderung"))
            logger.info(f"Richtlinien geändert von {actor.id}: {diff}")
            return None
