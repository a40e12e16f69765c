from typing import Callable, Optional
from uuid import UUID

from sqlmodel.ext.asyncio.session import AsyncSession

from sessionkeeper.adapter.repositories.audit_event_repository import AuditEventRepository
from sessionkeeper.app.services.events import IAuditSink, LifecycleEvent
from sessionkeeper.domain.entities import AuditEvent


def _uuid_or_none(value: Optional[str]) -> Optional[UUID]:
    return UUID(value) if value else None


class DatabaseAuditSink(IAuditSink):
    """
    Persists lifecycle events to the audit_events table.

    Each event is written in its own database session so it never shares a
    transaction with the operation that produced it.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def emit(self, event: LifecycleEvent) -> None:
        async with self.session_factory() as session:
            await AuditEventRepository(session).create(
                AuditEvent(
                    tenant_id=_uuid_or_none(event.tenant_id),
                    user_id=_uuid_or_none(event.user_id),
                    session_id=_uuid_or_none(event.session_id),
                    action=event.action.value,
                    event_metadata=event.metadata,
                    created_at=event.occurred_at,
                )
            )
            await session.commit()
