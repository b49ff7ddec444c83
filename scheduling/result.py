"""Ergebnis einer Lifecycle-Operation."""

import logging
from functools import wraps
from typing import Optional

from pydantic import BaseModel

from scheduling.exceptions import BookingSystemError

logger = logging.getLogger(__name__)


class OperationResult(BaseModel):
    """Erfolgsflag plus anzeigbare Fehlermeldung."""

    success: bool
    error: Optional[str] = None
    error_type: Optional[str] = None    # Klassenname, z.B. "ConflictError"
    entity_id: Optional[str] = None

    @classmethod
    def ok(cls, entity_id: Optional[str] = None) -> "OperationResult":
        return cls(success=True, entity_id=entity_id)

    @classmethod
    def fail(cls, exc: Exception) -> "OperationResult":
        return cls(success=False, error=str(exc), error_type=type(exc).__name__)

    def __bool__(self) -> bool:
        return self.success


def as_result(func):
    """Decorator: übersetzt fachliche Fehler in ein fehlgeschlagenes OperationResult.

    Die dekorierte Funktion gibt die ID der betroffenen Entität zurück.
    StorageError ist kein fachlicher Fehler und wird weitergereicht.
    """
    @wraps(func)
    def wrapper(*args, **kwargs) -> OperationResult:
        try:
            entity_id = func(*args, **kwargs)
        except BookingSystemError as e:
            logger.warning(f"{func.__name__} abgelehnt ({type(e).__name__}): {e}")
            return OperationResult.fail(e)
        return OperationResult.ok(entity_id)

    return wrapper
