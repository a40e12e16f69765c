"""
Session Management DTOs

Session metadata only; raw tokens and their hashes never leave the core.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class SessionInfo(BaseModel):
    """One session as shown to its owner"""

    id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    issued_at: datetime
    expires_at: datetime
    duration_minutes: float
    is_current: bool = False


class RecentSession(BaseModel):
    """Login history entry, active or ended"""

    id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    issued_at: datetime
    status: str
    revoked_reason: Optional[str] = None
    duration_minutes: float


class SecurityAlert(BaseModel):
    """Suspicious pattern found in a user's active sessions"""

    alert_type: str
    severity: str
    description: str
    created_at: datetime


class SessionWarnings(BaseModel):
    approaching_limit: bool
    security_concerns: bool


class SessionDashboard(BaseModel):
    """Everything the session management screen shows"""

    active_sessions: List[SessionInfo]
    security_alerts: List[SecurityAlert]
    recent_sessions: List[RecentSession]
    session_limit: int
    warnings: SessionWarnings


class RevokeSessionResult(BaseModel):
    session_id: str
    revoked: bool


class RevokeCountResult(BaseModel):
    revoked_count: int
