"""Datenmodell für einen Benutzer (Pydantic v2)."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """Referenzdaten eines Benutzers. Die Rolle wertet nur die Aufruferschicht aus."""

    id: str
    name: str
    email: str
    role: UserRole = UserRole.USER
    department: Optional[str] = None
    avatar: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
