"""
SessionKeeper Domain Entities

Each entity in its own file.
"""

from .enums import AuditAction, RevokedReason, Role, UserStatus
from .user import User
from .session import Session
from .session_lock import SessionLock
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "AuditAction",
    "RevokedReason",
    "Role",
    "UserStatus",
    # Entities
    "User",
    "Session",
    "SessionLock",
    "AuditEvent",
]
