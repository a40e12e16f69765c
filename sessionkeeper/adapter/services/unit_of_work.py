import logging
from typing import Optional

from sqlalchemy.exc import DBAPIError
from sqlmodel.ext.asyncio.session import AsyncSession

from sessionkeeper.adapter.repositories.session_repository import SessionRepository
from sessionkeeper.adapter.repositories.user_repository import UserRepository
from sessionkeeper.app.services.unit_of_work import StoreUnavailable, UnitOfWork

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession, timeout_seconds: Optional[float] = None):
        self.session = session
        self.timeout_seconds = timeout_seconds

    async def __aenter__(self):
        self.users = UserRepository(self.session)
        self.sessions = SessionRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        # Anything not committed is discarded
        try:
            await self.rollback()
        except DBAPIError as rollback_exc:
            logger.warning("Rollback failed: %s", rollback_exc)
            if exc is None:
                raise StoreUnavailable(str(rollback_exc)) from rollback_exc

        if isinstance(exc, DBAPIError):
            raise StoreUnavailable(str(exc.orig or exc)) from exc

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
