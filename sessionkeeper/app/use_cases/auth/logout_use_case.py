"""
Logout Use Case

Ends the caller's current session, or every session of the caller.
"""

import logging
from typing import Optional
from uuid import UUID

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.events import EventDispatcher, LifecycleEvent
from sessionkeeper.app.services.metrics import MetricsCollector, NullMetrics
from sessionkeeper.app.services.unit_of_work import UnitOfWork, store_operation
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import AuditAction, RevokedReason
from sessionkeeper.libs.result import Error, Result, Return
from .dtos import LogoutResponse, UserContext

logger = logging.getLogger(__name__)


class LogoutUseCase:
    """
    Business Rules:
    - Logout revokes with reason logout and is visible to the next validation
    - all_sessions=True revokes every active session of the user
    - Session duration is reported in minutes from issued_at
    """

    def __init__(
        self,
        uow: UnitOfWork,
        dispatcher: EventDispatcher,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.uow = uow
        self.dispatcher = dispatcher
        self.metrics = metrics or NullMetrics()

    @store_operation
    async def execute(
        self, user_context: UserContext, all_sessions: bool = False
    ) -> Result[LogoutResponse]:
        """
        Execute logout.

        Args:
            user_context: Authenticated caller
            all_sessions: Revoke every session instead of only the current one

        Returns:
            Result with LogoutResponse or Error
        """
        user_id = UUID(user_context.user_id)
        session_id = UUID(user_context.session_id)

        async with self.uow:
            now = utcnow()
            session = await self.uow.sessions.get_by_id(session_id)
            if session is None or session.user_id != user_id:
                return Return.err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))

            duration_minutes = round(
                max((now - session.issued_at).total_seconds(), 0) / 60, 2
            )

            if all_sessions:
                revoked_count = await self.uow.sessions.revoke_all_by_user_id(
                    user_id, RevokedReason.logout, now
                )
            else:
                revoked = await self.uow.sessions.revoke(session_id, RevokedReason.logout, now)
                revoked_count = 1 if revoked else 0

            await self.uow.commit()

        logger.info(
            "User %s logged out of %d session(s), session %s lasted %.2f minutes",
            user_id,
            revoked_count,
            session_id,
            duration_minutes,
        )
        self.metrics.increment("sessions_revoked", value=revoked_count, reason="logout")
        self.dispatcher.emit(
            LifecycleEvent(
                action=AuditAction.logout,
                user_id=user_context.user_id,
                tenant_id=user_context.tenant_id,
                session_id=user_context.session_id,
                metadata={
                    "all_sessions": all_sessions,
                    "revoked_count": revoked_count,
                    "session_duration_minutes": duration_minutes,
                },
            )
        )

        return Return.ok(
            LogoutResponse(
                revoked_count=revoked_count,
                session_duration_minutes=duration_minutes,
            )
        )
