"""
Revoke Sessions Use Case

Handles session revocation for logout and session management.
"""

import logging
from typing import Optional
from uuid import UUID

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.events import EventDispatcher, LifecycleEvent
from sessionkeeper.app.services.metrics import MetricsCollector, NullMetrics
from sessionkeeper.app.services.unit_of_work import UnitOfWork, store_operation
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.capabilities import Capability, has_capability
from sessionkeeper.domain.entities import AuditAction, RevokedReason
from sessionkeeper.libs.result import Error, Result, Return
from .dtos import RevokeCountResult, RevokeSessionResult

logger = logging.getLogger(__name__)


class RevokeSessionsUseCase:
    """
    Use case for revoking user sessions.

    Business Rules:
    - ACTIVE -> REVOKED is the only transition and it is terminal
    - Revoking an already-revoked session is a successful no-op
    - Users can only revoke their own sessions one by one
    - revoke_all_except_current never touches the caller's session
    - Admins can revoke every session of a user in their own tenant
    - Every revocation commits before returning, so the next validation sees it
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
    async def revoke_session(
        self,
        session_id: UUID,
        requesting_user_id: UUID,
        reason: RevokedReason = RevokedReason.logout,
    ) -> Result[RevokeSessionResult]:
        """
        Revoke a specific session owned by the caller.

        Args:
            session_id: Session to revoke
            requesting_user_id: Owner of the session
            reason: Recorded revoked_reason (defaults to logout)

        Returns:
            Result with whether this call performed the revocation, or Error
        """
        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)

            # Someone else's session looks exactly like a missing one
            if session is None or session.user_id != requesting_user_id:
                return Return.err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))

            if session.revoked:
                return Return.ok(RevokeSessionResult(session_id=str(session_id), revoked=False))

            tenant_id = session.tenant_id
            revoked = await self.uow.sessions.revoke(session_id, reason, utcnow())
            await self.uow.commit()

        if revoked:
            self.metrics.increment("sessions_revoked", reason=reason.value)
            self.dispatcher.emit(
                LifecycleEvent(
                    action=AuditAction.session_revoked,
                    user_id=str(requesting_user_id),
                    tenant_id=str(tenant_id) if tenant_id else None,
                    session_id=str(session_id),
                    metadata={"reason": reason.value},
                )
            )

        return Return.ok(RevokeSessionResult(session_id=str(session_id), revoked=revoked))

    @store_operation
    async def revoke_all_except_current(
        self, user_id: UUID, current_session_id: UUID
    ) -> Result[RevokeCountResult]:
        """
        Revoke all sessions for the user except the current session.

        This is a self-service operation (logout other devices).

        Args:
            user_id: Owner of the sessions
            current_session_id: Session to keep active

        Returns:
            Result with count of revoked sessions, or Error
        """
        async with self.uow:
            current_session = await self.uow.sessions.get_by_id(current_session_id)
            if current_session is None:
                return Return.err(
                    Error(ErrorCode.SESSION_NOT_FOUND, "Current session not found")
                )

            if current_session.user_id != user_id:
                return Return.err(
                    Error(ErrorCode.FORBIDDEN, "Session does not belong to current user")
                )

            tenant_id = current_session.tenant_id
            count = await self.uow.sessions.revoke_all_except_session(
                user_id,
                current_session_id,
                RevokedReason.user_requested_revoke_all,
                utcnow(),
            )
            await self.uow.commit()

        logger.info(
            "User %s revoked %d other session(s), kept %s",
            user_id,
            count,
            current_session_id,
        )
        self.metrics.increment(
            "sessions_revoked",
            value=count,
            reason=RevokedReason.user_requested_revoke_all.value,
        )
        self.dispatcher.emit(
            LifecycleEvent(
                action=AuditAction.sessions_revoked,
                user_id=str(user_id),
                tenant_id=str(tenant_id) if tenant_id else None,
                session_id=str(current_session_id),
                metadata={
                    "reason": RevokedReason.user_requested_revoke_all.value,
                    "revoked_count": count,
                },
            )
        )

        return Return.ok(RevokeCountResult(revoked_count=count))

    @store_operation
    async def revoke_all_for_user(
        self,
        target_user_id: UUID,
        requesting_user_id: UUID,
        requesting_tenant_id: Optional[UUID],
        requesting_role: str,
    ) -> Result[RevokeCountResult]:
        """
        Revoke all sessions for a user.

        Args:
            target_user_id: User whose sessions will be revoked
            requesting_user_id: User requesting the revocation
            requesting_tenant_id: Current tenant context
            requesting_role: Role of requesting user

        Returns:
            Result with count of revoked sessions, or Error
        """
        is_self = target_user_id == requesting_user_id
        if not is_self and not has_capability(
            requesting_role, Capability.revoke_tenant_sessions
        ):
            return Return.err(
                Error(ErrorCode.FORBIDDEN, "Only admins can revoke other users' sessions")
            )

        async with self.uow:
            target_user = await self.uow.users.get_by_id(target_user_id)
            if target_user is None:
                return Return.err(Error(ErrorCode.USER_NOT_FOUND, "User not found"))

            crosses_tenant = target_user.tenant_id != requesting_tenant_id
            if (
                not is_self
                and crosses_tenant
                and not has_capability(requesting_role, Capability.revoke_any_sessions)
            ):
                return Return.err(
                    Error(ErrorCode.FORBIDDEN, "User belongs to another tenant")
                )

            reason = RevokedReason.logout if is_self else RevokedReason.admin_revoked
            count = await self.uow.sessions.revoke_all_by_user_id(
                target_user_id, reason, utcnow()
            )
            await self.uow.commit()

        logger.info(
            "User %s revoked all %d session(s) of user %s",
            requesting_user_id,
            count,
            target_user_id,
        )
        self.metrics.increment("sessions_revoked", value=count, reason=reason.value)
        self.dispatcher.emit(
            LifecycleEvent(
                action=AuditAction.sessions_revoked,
                user_id=str(requesting_user_id),
                tenant_id=str(requesting_tenant_id) if requesting_tenant_id else None,
                metadata={
                    "target_user_id": str(target_user_id),
                    "reason": reason.value,
                    "revoked_count": count,
                    "is_self": is_self,
                },
            )
        )

        return Return.ok(RevokeCountResult(revoked_count=count))
