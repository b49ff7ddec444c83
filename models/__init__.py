from models.room import Room, RoomDraft, Resource
from models.booking import Booking, BookingDraft, BookingStatus, MeetingType
from models.user import User, UserRole
from models.audit import AuditEntry, AuditAction
from models.snapshot import StoreSnapshot

__all__ = [
    "Room",
    "RoomDraft",
    "Resource",
    "Booking",
    "BookingDraft",
    "BookingStatus",
    "MeetingType",
    "User",
    "UserRole",
    "AuditEntry",
    "AuditAction",
    "StoreSnapshot",
]
