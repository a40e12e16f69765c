"""
List Sessions Use Case

Read-only views over a user's sessions: the active list, security alerts
and the session dashboard.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sessionkeeper.app.services.unit_of_work import UnitOfWork, store_operation
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import Session
from sessionkeeper.libs.result import Result, Return
from .dtos import (
    RecentSession,
    SecurityAlert,
    SessionDashboard,
    SessionInfo,
    SessionWarnings,
)

MAX_DISTINCT_IPS = 2
MAX_ACTIVE_DEVICES = 5
RECENT_SESSIONS_LIMIT = 10


def _minutes_between(start: datetime, end: datetime) -> float:
    return round(max((end - start).total_seconds(), 0) / 60, 2)


def _to_info(session: Session, now: datetime, current_session_id: Optional[UUID]) -> SessionInfo:
    return SessionInfo(
        id=str(session.id),
        ip_address=session.ip_address,
        user_agent=session.user_agent,
        issued_at=session.issued_at,
        expires_at=session.refresh_expires_at,
        duration_minutes=_minutes_between(session.issued_at, now),
        is_current=current_session_id is not None and session.id == current_session_id,
    )


def _to_recent(session: Session, now: datetime) -> RecentSession:
    active = session.is_active(now)
    if active:
        ended_at = now
    else:
        ended_at = session.revoked_at or min(session.refresh_expires_at, now)
    return RecentSession(
        id=str(session.id),
        ip_address=session.ip_address,
        user_agent=session.user_agent,
        issued_at=session.issued_at,
        status="active" if active else "ended",
        revoked_reason=session.revoked_reason.value if session.revoked_reason else None,
        duration_minutes=_minutes_between(session.issued_at, ended_at),
    )


def detect_suspicious_activity(sessions: List[Session], now: datetime) -> List[SecurityAlert]:
    """Flag active sessions spread over many IPs or too many devices."""
    alerts = []

    ip_count = len({s.ip_address for s in sessions if s.ip_address})
    if ip_count > MAX_DISTINCT_IPS:
        alerts.append(
            SecurityAlert(
                alert_type="multiple_locations",
                severity="medium",
                description=f"User has active sessions from {ip_count} different IP addresses",
                created_at=now,
            )
        )

    if len(sessions) > MAX_ACTIVE_DEVICES:
        alerts.append(
            SecurityAlert(
                alert_type="too_many_devices",
                severity="high",
                description=(
                    f"User has {len(sessions)} active sessions (limit: {MAX_ACTIVE_DEVICES})"
                ),
                created_at=now,
            )
        )

    return alerts


class ListSessionsUseCase:
    """
    Business Rules:
    - Only metadata is returned, never tokens or token hashes
    - Active sessions are listed newest first
    - The caller's own session is flagged as current
    """

    def __init__(self, uow: UnitOfWork, max_active_sessions: int = 3):
        self.uow = uow
        self.max_active_sessions = max_active_sessions

    @store_operation
    async def list_active(
        self, user_id: UUID, current_session_id: Optional[UUID] = None
    ) -> Result[List[SessionInfo]]:
        now = utcnow()
        async with self.uow:
            sessions = await self.uow.sessions.list_active_by_user(user_id, now)
            infos = [_to_info(s, now, current_session_id) for s in sessions]

        infos.sort(key=lambda info: info.issued_at, reverse=True)
        return Return.ok(infos)

    @store_operation
    async def security_alerts(self, user_id: UUID) -> Result[List[SecurityAlert]]:
        now = utcnow()
        async with self.uow:
            sessions = await self.uow.sessions.list_active_by_user(user_id, now)
            alerts = detect_suspicious_activity(sessions, now)
        return Return.ok(alerts)

    @store_operation
    async def dashboard(
        self, user_id: UUID, current_session_id: Optional[UUID] = None
    ) -> Result[SessionDashboard]:
        now = utcnow()
        async with self.uow:
            active = await self.uow.sessions.list_active_by_user(user_id, now)
            recent = await self.uow.sessions.list_recent_by_user(
                user_id, limit=RECENT_SESSIONS_LIMIT
            )
            infos = [_to_info(s, now, current_session_id) for s in active]
            alerts = detect_suspicious_activity(active, now)
            history = [_to_recent(s, now) for s in recent]

        infos.sort(key=lambda info: info.issued_at, reverse=True)
        return Return.ok(
            SessionDashboard(
                active_sessions=infos,
                security_alerts=alerts,
                recent_sessions=history,
                session_limit=self.max_active_sessions,
                warnings=SessionWarnings(
                    approaching_limit=len(infos) >= self.max_active_sessions - 1,
                    security_concerns=bool(alerts),
                ),
            )
        )
