from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sessionkeeper.domain.entities import RevokedReason, Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def lock_user(self, user_id: UUID) -> int:
        """
        Take the per-user session lock for the rest of the transaction.

        Must be the first write of the unit of work. Returns the new lock
        generation.
        """
        pass

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def get_by_access_token_hash(self, token_hash: str) -> Optional[Session]:
        """Get session by SHA-256 digest of its access token"""
        pass

    @abstractmethod
    async def get_by_refresh_token_hash(self, token_hash: str) -> Optional[Session]:
        """Get session by SHA-256 digest of its refresh token, revoked or not"""
        pass

    @abstractmethod
    async def list_active_by_user(self, user_id: UUID, now: datetime) -> List[Session]:
        """Non-revoked, unexpired sessions, oldest first (issued_at, id)"""
        pass

    @abstractmethod
    async def list_recent_by_user(self, user_id: UUID, limit: int = 10) -> List[Session]:
        """Most recent sessions of any state, newest first"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def revoke(
        self, session_id: UUID, reason: RevokedReason, now: datetime
    ) -> bool:
        """Revoke one session. Returns False if it was already revoked or missing."""
        pass

    @abstractmethod
    async def revoke_many(
        self, session_ids: Sequence[UUID], reason: RevokedReason, now: datetime
    ) -> int:
        """Revoke the given sessions. Returns count actually revoked."""
        pass

    @abstractmethod
    async def revoke_all_by_user_id(
        self, user_id: UUID, reason: RevokedReason, now: datetime
    ) -> int:
        """Revoke every active session of a user. Returns count."""
        pass

    @abstractmethod
    async def revoke_all_except_session(
        self, user_id: UUID, session_id: UUID, reason: RevokedReason, now: datetime
    ) -> int:
        """Revoke all active sessions for a user except the specified session. Returns count."""
        pass
