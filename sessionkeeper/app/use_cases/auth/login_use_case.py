"""
Login Use Case

Verifies credentials and opens a new session, evicting the user's oldest
sessions when the active session limit is reached.
"""

import logging
from typing import List, Optional, Tuple

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.credential_verifier import (
    CredentialVerifier,
    VerifiedIdentity,
)
from sessionkeeper.app.services.events import (
    EventDispatcher,
    LifecycleEvent,
    SessionMetadata,
)
from sessionkeeper.app.services.metrics import MetricsCollector, NullMetrics
from sessionkeeper.app.services.token_codec import TokenCodec
from sessionkeeper.app.services.unit_of_work import (
    StoreUnavailable,
    UnitOfWork,
    store_operation,
)
from sessionkeeper.app.use_cases.sessions.session_limiter import SessionLimiter
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import AuditAction, RevokedReason
from sessionkeeper.libs.result import Error, Result, Return
from .dtos import TokenPair
from .session_issuer import SessionPolicy, issue_session

logger = logging.getLogger(__name__)

# The locked section is retried once on store failure before giving up
OPEN_SESSION_ATTEMPTS = 2


class LoginUseCase:
    """
    Use case for user login.

    Business Rules:
    - Unknown email and wrong password are indistinguishable
    - Inactive accounts cannot log in
    - Counting, evicting and inserting happen under one per-user lock
    - After login the user has at most max_active_sessions active sessions
    - The user is notified once per login that evicted sessions
    - Notification and audit never delay or fail the login
    """

    def __init__(
        self,
        uow: UnitOfWork,
        codec: TokenCodec,
        policy: SessionPolicy,
        dispatcher: EventDispatcher,
        verifier: Optional[CredentialVerifier] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.uow = uow
        self.codec = codec
        self.policy = policy
        self.dispatcher = dispatcher
        self.verifier = verifier or CredentialVerifier()
        self.metrics = metrics or NullMetrics()

    @store_operation
    async def execute(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[TokenPair]:
        """
        Execute login.

        Args:
            email: User email
            password: User password (plain text)
            ip_address: Client IP address
            user_agent: Client user agent

        Returns:
            Result with TokenPair or Error
        """
        async with self.uow:
            verified = await self.verifier.verify(self.uow.users, email, password)

        if verified.is_err():
            self.metrics.increment("logins_failed", code=verified.error.code)
            self.dispatcher.emit(
                LifecycleEvent(
                    action=AuditAction.login_failed,
                    metadata={
                        "email": email,
                        "reason": verified.error.code,
                        "ip_address": ip_address,
                        "user_agent": user_agent,
                    },
                )
            )
            return Return.err(verified.error)

        identity = verified.value

        for attempt in range(1, OPEN_SESSION_ATTEMPTS + 1):
            try:
                metadata, pair, evicted_ids = await self._open_session(
                    identity, ip_address, user_agent
                )
                break
            except StoreUnavailable as exc:
                if attempt == OPEN_SESSION_ATTEMPTS:
                    logger.error(
                        "Could not open session for user %s after %d attempts: %s",
                        identity.user_id,
                        attempt,
                        exc,
                    )
                    return Return.err(
                        Error(
                            ErrorCode.LIMIT_EVICTION_FAILURE,
                            "Could not enforce session limit",
                        )
                    )
                logger.warning(
                    "Opening session for user %s failed, retrying: %s",
                    identity.user_id,
                    exc,
                )

        self.metrics.increment("logins_succeeded")
        self._dispatch_events(identity, metadata, evicted_ids)
        return Return.ok(pair)

    async def _open_session(
        self,
        identity: VerifiedIdentity,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> Tuple[SessionMetadata, TokenPair, List[str]]:
        limiter = SessionLimiter(self.uow, self.policy.max_active_sessions, self.metrics)

        async with self.uow:
            # Taken before any read so concurrent logins queue up here
            await self.uow.sessions.lock_user(identity.user_id)

            now = utcnow()
            evicted = await limiter.make_room(identity.user_id, now)
            evicted_ids = [str(s.id) for s in evicted]

            session, pair = issue_session(
                self.codec,
                self.policy,
                identity,
                now,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            await self.uow.sessions.create(session)
            metadata = SessionMetadata.from_session(session)

            await self.uow.commit()

        logger.info("User %s logged in with session %s", identity.user_id, metadata.session_id)
        return metadata, pair, evicted_ids

    def _dispatch_events(
        self,
        identity: VerifiedIdentity,
        metadata: SessionMetadata,
        evicted_ids: List[str],
    ) -> None:
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
                action=AuditAction.login_succeeded,
                user_id=user_id,
                tenant_id=tenant_id,
                session_id=metadata.session_id,
                metadata={
                    "ip_address": metadata.ip_address,
                    "user_agent": metadata.user_agent,
                    "evicted_count": len(evicted_ids),
                },
            )
        )
