"""
Session Entity

Durable record of every issued token pair.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import RevokedReason


class Session(SQLModel, table=True):
    """
    Session entity - binds a token pair to a user and a device context.

    Business Rules:
    - Raw tokens are never stored, only their SHA-256 digests
    - Both digests are globally unique
    - issued_at < access_expires_at < refresh_expires_at
    - revoked is monotonic: once set it is never cleared
    - Only the revocation columns are ever updated
    - There is no stored "expired" state; expiry is computed from timestamps
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    tenant_id: Optional[UUID] = Field(default=None, index=True)

    access_token_hash: str = Field(max_length=64, unique=True, index=True)
    refresh_token_hash: str = Field(max_length=64, unique=True, index=True)

    issued_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    access_expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    refresh_expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None)

    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked_reason: Optional[RevokedReason] = Field(default=None)

    __table_args__ = (
        Index("idx_session_user_revoked", "user_id", "revoked"),
        Index("idx_session_refresh_expires_at", "refresh_expires_at"),
    )

    def is_active(self, now: datetime) -> bool:
        return not self.revoked and self.refresh_expires_at > now
