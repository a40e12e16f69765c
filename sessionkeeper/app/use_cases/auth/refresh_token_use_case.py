"""
Refresh Token Use Case

Rotates a refresh token: the presented session is revoked and a fresh
token pair is issued in the same transaction. A refresh token that was
already used or revoked is treated as stolen.
"""

import logging
from typing import Optional

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.credential_verifier import VerifiedIdentity
from sessionkeeper.app.services.events import (
    EventDispatcher,
    LifecycleEvent,
    SessionMetadata,
)
from sessionkeeper.app.services.metrics import MetricsCollector, NullMetrics
from sessionkeeper.app.services.token_codec import TokenCodec, hash_token
from sessionkeeper.app.services.unit_of_work import UnitOfWork, store_operation
from sessionkeeper.app.use_cases.sessions.session_limiter import SessionLimiter
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import AuditAction, RevokedReason
from sessionkeeper.libs.result import Error, Result, Return
from .dtos import TokenPair
from .session_issuer import SessionPolicy, issue_session

logger = logging.getLogger(__name__)


class RefreshTokenUseCase:
    """
    Use case for refreshing an access token.

    Business Rules:
    - Every refresh token is single use
    - The predecessor is revoked with reason refresh_rotation
    - Presenting a revoked refresh token is a replay
    - With replay_revokes_all, replaying a rotated token revokes every
      session of the user; tokens revoked for any other reason are only
      rejected
    - Of two concurrent refreshes with the same token, exactly one succeeds
    - The new session counts against the active session limit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        codec: TokenCodec,
        policy: SessionPolicy,
        dispatcher: EventDispatcher,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.uow = uow
        self.codec = codec
        self.policy = policy
        self.dispatcher = dispatcher
        self.metrics = metrics or NullMetrics()

    @store_operation
    async def execute(
        self,
        refresh_token: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[TokenPair]:
        """
        Execute token refresh.

        Args:
            refresh_token: Raw refresh token issued at login or last refresh
            client_ip: Client IP address recorded on the new session
            user_agent: Client user agent recorded on the new session

        Returns:
            Result with the new TokenPair or Error
        """
        token_hash = hash_token(refresh_token)
        replay = None

        async with self.uow:
            now = utcnow()
            session = await self.uow.sessions.get_by_refresh_token_hash(token_hash)

            if session is None:
                return Return.err(Error(ErrorCode.INVALID_TOKEN, "Invalid refresh token"))

            session_id = session.id
            user_id = session.user_id
            tenant_id = session.tenant_id

            if session.revoked:
                replay = await self._revoke_after_replay(
                    user_id, session_id, session.revoked_reason, now
                )
            elif session.refresh_expires_at <= now:
                return Return.err(Error(ErrorCode.TOKEN_EXPIRED, "Refresh token has expired"))
            else:
                user = await self.uow.users.get_by_id(user_id)
                if user is None or not user.is_active:
                    return Return.err(
                        Error(ErrorCode.ACCOUNT_INACTIVE, "User account is inactive")
                    )
                identity = VerifiedIdentity.from_user(user)

                await self.uow.sessions.lock_user(user_id)

                # Conditional revoke: only one concurrent refresh can win it
                rotated = await self.uow.sessions.revoke(
                    session_id, RevokedReason.refresh_rotation, now
                )
                if not rotated:
                    replay = await self._revoke_after_replay(
                        user_id, session_id, RevokedReason.refresh_rotation, now
                    )
                else:
                    limiter = SessionLimiter(
                        self.uow, self.policy.max_active_sessions, self.metrics
                    )
                    evicted = await limiter.make_room(user_id, now)
                    evicted_ids = [str(s.id) for s in evicted]

                    new_session, pair = issue_session(
                        self.codec,
                        self.policy,
                        identity,
                        now,
                        ip_address=client_ip,
                        user_agent=user_agent,
                    )
                    await self.uow.sessions.create(new_session)
                    metadata = SessionMetadata.from_session(new_session)

            await self.uow.commit()

        if replay is not None:
            self._report_replay(user_id, tenant_id, session_id, replay, client_ip, user_agent)
            return Return.err(
                Error(ErrorCode.REFRESH_REPLAY, "Refresh token has already been used")
            )

        logger.info(
            "Rotated session %s to %s for user %s", session_id, metadata.session_id, user_id
        )
        self.metrics.increment("tokens_refreshed")
        self._dispatch_rotation(identity, session_id, metadata, evicted_ids)
        return Return.ok(pair)

    async def _revoke_after_replay(self, user_id, session_id, previous_reason, now) -> dict:
        # Only a rotated token can have been copied; evicted and logged out
        # tokens are rejected without touching the other sessions
        revoked_count = 0
        if self.policy.replay_revokes_all and previous_reason == RevokedReason.refresh_rotation:
            await self.uow.sessions.lock_user(user_id)
            revoked_count = await self.uow.sessions.revoke_all_by_user_id(
                user_id, RevokedReason.refresh_replay_detected, now
            )
        return {
            "previous_reason": previous_reason.value if previous_reason else None,
            "revoked_count": revoked_count,
        }

    def _report_replay(self, user_id, tenant_id, session_id, replay, client_ip, user_agent):
        logger.error(
            "Refresh token replay detected for user %s on session %s (revoked %d session(s))",
            user_id,
            session_id,
            replay["revoked_count"],
        )
        self.metrics.increment("refresh_replays_detected")
        self.dispatcher.emit(
            LifecycleEvent(
                action=AuditAction.refresh_replay_detected,
                user_id=str(user_id),
                tenant_id=str(tenant_id) if tenant_id else None,
                session_id=str(session_id),
                metadata={**replay, "ip_address": client_ip, "user_agent": user_agent},
            )
        )

    def _dispatch_rotation(self, identity, previous_session_id, metadata, evicted_ids):
        user_id = str(identity.user_id)
        tenant_id = str(identity.tenant_id) if identity.tenant_id else None

        if evicted_ids:
            self.dispatcher.notify_session_eviction(identity, metadata, len(evicted_ids))
            for evicted_id in evicted_ids:
                self.dispatcher.emit(
                    LifecycleEvent(
                        action=AuditAction.session_evicted,
                        user_id=user_id,
                        tenant_id=tenant_id,
                        session_id=evicted_id,
                        metadata={
                            "reason": RevokedReason.session_limit_exceeded.value,
                            "new_session_id": metadata.session_id,
                        },
                    )
                )

        self.dispatcher.emit(
            LifecycleEvent(
                action=AuditAction.token_refreshed,
                user_id=user_id,
                tenant_id=tenant_id,
                session_id=metadata.session_id,
                metadata={"previous_session_id": str(previous_session_id)},
            )
        )
