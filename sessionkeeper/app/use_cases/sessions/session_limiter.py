"""
Session Limiter

Keeps at most N active sessions per user by evicting the oldest ones
before a new session is inserted.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sessionkeeper.app.services.metrics import MetricsCollector, NullMetrics
from sessionkeeper.app.services.unit_of_work import UnitOfWork
from sessionkeeper.domain.entities import RevokedReason, Session

logger = logging.getLogger(__name__)


class SessionLimiter:
    """
    Business Rules:
    - Runs inside a unit of work that already holds the user's session lock
    - Active means revoked = false and refresh_expires_at > now
    - When count >= N, the oldest sessions are revoked until N - 1 remain
    - Oldest is min(issued_at); equal timestamps evict the lowest id first
    - Evicted sessions get revoked_reason = session_limit_exceeded
    """

    def __init__(
        self,
        uow: UnitOfWork,
        max_active_sessions: int,
        metrics: Optional[MetricsCollector] = None,
    ):
        if max_active_sessions < 1:
            raise ValueError("max_active_sessions must be at least 1")
        self.uow = uow
        self.max_active_sessions = max_active_sessions
        self.metrics = metrics or NullMetrics()

    async def make_room(self, user_id: UUID, now: datetime) -> List[Session]:
        """Evict as needed so one more session fits. Returns the evicted sessions."""
        active = await self.uow.sessions.list_active_by_user(user_id, now)
        active = sorted(active, key=lambda s: (s.issued_at, str(s.id)))

        excess = len(active) - (self.max_active_sessions - 1)
        if excess <= 0:
            return []

        victims = active[:excess]
        revoked = await self.uow.sessions.revoke_many(
            [s.id for s in victims], RevokedReason.session_limit_exceeded, now
        )
        if revoked != len(victims):
            # Only possible if another writer ignored the user lock
            logger.warning(
                "Expected to evict %d sessions for user %s, revoked %d",
                len(victims),
                user_id,
                revoked,
            )

        logger.info(
            "Evicted %d session(s) for user %s due to session limit %d",
            len(victims),
            user_id,
            self.max_active_sessions,
        )
        self.metrics.increment("sessions_evicted", value=len(victims))
        return victims
