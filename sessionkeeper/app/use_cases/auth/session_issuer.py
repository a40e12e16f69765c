"""
Session issuance shared by login and refresh rotation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sessionkeeper.app.services.credential_verifier import VerifiedIdentity
from sessionkeeper.app.services.token_codec import (
    TokenClaims,
    TokenCodec,
    generate_refresh_token,
    hash_token,
)
from sessionkeeper.domain.entities import Session
from .dtos import TokenPair


@dataclass(frozen=True)
class SessionPolicy:
    """Lifetimes and limits applied to every issued session."""

    max_active_sessions: int = 3
    access_token_ttl: timedelta = timedelta(minutes=15)
    refresh_token_ttl: timedelta = timedelta(hours=24)
    replay_revokes_all: bool = True

    def __post_init__(self):
        if self.max_active_sessions < 1:
            raise ValueError("max_active_sessions must be at least 1")
        if self.refresh_token_ttl <= self.access_token_ttl:
            raise ValueError("refresh_token_ttl must be longer than access_token_ttl")

    @classmethod
    def from_config(cls, config) -> "SessionPolicy":
        return cls(
            max_active_sessions=config.MAX_ACTIVE_SESSIONS,
            access_token_ttl=timedelta(minutes=config.ACCESS_TOKEN_TTL_MINUTES),
            refresh_token_ttl=timedelta(hours=config.REFRESH_TOKEN_TTL_HOURS),
            replay_revokes_all=config.REFRESH_REPLAY_REVOKES_ALL,
        )


def issue_session(
    codec: TokenCodec,
    policy: SessionPolicy,
    identity: VerifiedIdentity,
    now: datetime,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Tuple[Session, TokenPair]:
    """Build a new ACTIVE session row and the raw token pair it stands for."""
    access_expires_at = now + policy.access_token_ttl
    refresh_expires_at = now + policy.refresh_token_ttl

    access_token = codec.issue(
        TokenClaims(
            subject_id=identity.user_id,
            role=identity.role,
            tenant_id=identity.tenant_id,
            issued_at=now,
            expires_at=access_expires_at,
        )
    )
    refresh_token = generate_refresh_token()

    session = Session(
        user_id=identity.user_id,
        tenant_id=identity.tenant_id,
        access_token_hash=hash_token(access_token),
        refresh_token_hash=hash_token(refresh_token),
        issued_at=now,
        access_expires_at=access_expires_at,
        refresh_expires_at=refresh_expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    pair = TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=int(policy.access_token_ttl.total_seconds()),
        session_id=str(session.id),
    )
    return session, pair
