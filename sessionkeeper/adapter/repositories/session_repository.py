from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from sessionkeeper.app.repositories.session_repository import ISessionRepository
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import RevokedReason, Session, SessionLock


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lock_user(self, user_id: UUID) -> int:
        """
        Bump the user's lock row, creating it on first use.

        The UPDATE takes a row lock on PostgreSQL and the database write lock
        on SQLite, so it serializes every transaction that follows it for
        the same user. Two first-time inserts racing each other fail with an
        IntegrityError in the loser, which the unit of work reports as
        StoreUnavailable.
        """
        now = utcnow()
        stmt = (
            update(SessionLock)
            .where(SessionLock.user_id == user_id)
            .values(generation=SessionLock.generation + 1, acquired_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            self.session.add(SessionLock(user_id=user_id, generation=1, acquired_at=now))
            await self.session.flush()
            return 1

        generation = await self.session.exec(
            select(SessionLock.generation).where(SessionLock.user_id == user_id)
        )
        return generation.one()

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_access_token_hash(self, token_hash: str) -> Optional[Session]:
        stmt = select(Session).where(Session.access_token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_refresh_token_hash(self, token_hash: str) -> Optional[Session]:
        stmt = select(Session).where(Session.refresh_token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def list_active_by_user(self, user_id: UUID, now: datetime) -> List[Session]:
        """Active sessions for a user, oldest first"""
        stmt = (
            select(Session)
            .where(
                Session.user_id == user_id,
                Session.revoked == False,  # noqa: E712
                Session.refresh_expires_at > now,
            )
            .order_by(Session.issued_at, Session.id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_recent_by_user(self, user_id: UUID, limit: int = 10) -> List[Session]:
        stmt = (
            select(Session)
            .where(Session.user_id == user_id)
            .order_by(Session.issued_at.desc(), Session.id.desc())
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def revoke(self, session_id: UUID, reason: RevokedReason, now: datetime) -> bool:
        """Revoke a specific session if it is still unrevoked"""
        stmt = (
            update(Session)
            .where(Session.id == session_id, Session.revoked == False)  # noqa: E712
            .values(revoked=True, revoked_at=now, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_many(
        self, session_ids: Sequence[UUID], reason: RevokedReason, now: datetime
    ) -> int:
        if not session_ids:
            return 0
        stmt = (
            update(Session)
            .where(Session.id.in_(list(session_ids)), Session.revoked == False)  # noqa: E712
            .values(revoked=True, revoked_at=now, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_all_by_user_id(
        self, user_id: UUID, reason: RevokedReason, now: datetime
    ) -> int:
        """Revoke all active sessions for a user. Expired sessions are left as they are"""
        stmt = (
            update(Session)
            .where(
                Session.user_id == user_id,
                Session.revoked == False,  # noqa: E712
                Session.refresh_expires_at > now,
            )
            .values(revoked=True, revoked_at=now, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_all_except_session(
        self, user_id: UUID, session_id: UUID, reason: RevokedReason, now: datetime
    ) -> int:
        """Revoke all active sessions for a user except the specified session"""
        stmt = (
            update(Session)
            .where(
                Session.user_id == user_id,
                Session.id != session_id,
                Session.revoked == False,  # noqa: E712
                Session.refresh_expires_at > now,
            )
            .values(revoked=True, revoked_at=now, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
