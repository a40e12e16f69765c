"""
Session Management Use Cases

Limiting, listing and revoking sessions.
"""

from .session_limiter import SessionLimiter
from .revoke_sessions_use_case import RevokeSessionsUseCase
from .list_sessions_use_case import ListSessionsUseCase
from .dtos import (
    RecentSession,
    RevokeCountResult,
    RevokeSessionResult,
    SecurityAlert,
    SessionDashboard,
    SessionInfo,
)

__all__ = [
    # Use Cases
    "SessionLimiter",
    "RevokeSessionsUseCase",
    "ListSessionsUseCase",
    # DTOs
    "RecentSession",
    "RevokeCountResult",
    "RevokeSessionResult",
    "SecurityAlert",
    "SessionDashboard",
    "SessionInfo",
]
