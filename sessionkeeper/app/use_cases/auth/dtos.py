"""
Authentication Use Case DTOs (Data Transfer Objects)

All Response classes for the auth domain.
"""

from typing import Optional
from pydantic import BaseModel


class TokenPair(BaseModel):
    """Raw tokens handed to the caller exactly once; only hashes are stored"""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    session_id: str


class UserContext(BaseModel):
    """Identity of an authenticated caller, derived from a validated access token"""

    user_id: str
    role: str
    tenant_id: Optional[str] = None
    session_id: str


class LogoutResponse(BaseModel):
    """Response for logout use case"""

    revoked_count: int
    session_duration_minutes: float
