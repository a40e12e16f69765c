import asyncio
import functools
import logging
from abc import ABC, abstractmethod
from typing import Optional

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.repositories.session_repository import ISessionRepository
from sessionkeeper.app.repositories.user_repository import IUserRepository
from sessionkeeper.libs.result import Error, Return

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    """The session store failed or could not be reached; safe to retry."""


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    sessions: ISessionRepository

    # Deadline for one use case's store work; None disables it
    timeout_seconds: Optional[float] = None

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


def store_operation(func):
    """
    Bound a use case method by the unit of work deadline.

    Timeouts and store failures become a STORE_UNAVAILABLE error result
    instead of hanging the request.
    """

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            async with asyncio.timeout(self.uow.timeout_seconds):
                return await func(self, *args, **kwargs)
        except TimeoutError:
            logger.error("Session store timed out in %s", func.__qualname__)
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE, "Session store timed out")
            )
        except StoreUnavailable as exc:
            logger.error("Session store failed in %s: %s", func.__qualname__, exc)
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE, "Session store unavailable")
            )

    return wrapper
