"""
Lifecycle event delivery.

Notification and audit emission are best-effort side effects: they run on a
bounded background queue, each job under its own timeout, and their failures
are logged and dropped. They never run inside a session store transaction.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, Field

from sessionkeeper.app.services.credential_verifier import VerifiedIdentity
from sessionkeeper.app.services.metrics import MetricsCollector, NullMetrics
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import AuditAction, Session

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]


class SessionMetadata(BaseModel):
    """Non-secret description of a session, safe to hand to collaborators"""

    session_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    issued_at: datetime

    @classmethod
    def from_session(cls, session: Session) -> "SessionMetadata":
        return cls(
            session_id=str(session.id),
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            issued_at=session.issued_at,
        )


class LifecycleEvent(BaseModel):
    """One audit record: login success/failure, revocation, replay, ..."""

    action: AuditAction
    user_id: Optional[str] = None
    tenant_id: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=utcnow)


class INotifier(ABC):
    """Tells the user something happened to their sessions"""

    @abstractmethod
    async def notify_session_eviction(
        self, user: VerifiedIdentity, new_session: SessionMetadata, evicted_count: int
    ) -> None:
        pass


class IAuditSink(ABC):
    @abstractmethod
    async def emit(self, event: LifecycleEvent) -> None:
        pass


class EventDispatcher:
    """
    Bounded fire-and-forget queue in front of the notifier and audit sink.

    Business Rules:
    - Callers never await delivery; enqueueing never blocks
    - A full queue drops the job and logs it
    - Each job runs under timeout_seconds
    - NotificationFailure / AuditEmitFailure are logged, never raised
    """

    def __init__(
        self,
        notifier: INotifier,
        audit_sink: IAuditSink,
        metrics: Optional[MetricsCollector] = None,
        max_pending: int = 1000,
        timeout_seconds: float = 5.0,
    ):
        self.notifier = notifier
        self.audit_sink = audit_sink
        self.metrics = metrics or NullMetrics()
        self.timeout_seconds = timeout_seconds
        self._max_pending = max_pending
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    def emit(self, event: LifecycleEvent) -> None:
        self._submit("audit_emit", lambda: self.audit_sink.emit(event))

    def notify_session_eviction(
        self, user: VerifiedIdentity, new_session: SessionMetadata, evicted_count: int
    ) -> None:
        self._submit(
            "notify_eviction",
            lambda: self.notifier.notify_session_eviction(user, new_session, evicted_count),
        )

    def _submit(self, kind: str, job: Job) -> None:
        try:
            self._ensure_worker()
            self._queue.put_nowait((kind, job))
        except asyncio.QueueFull:
            logger.warning("Event queue full, dropping %s job", kind)
            self.metrics.increment("events_dropped", kind=kind)
        except RuntimeError as exc:
            # No running event loop to deliver on
            logger.warning("Cannot schedule %s job: %s", kind, exc)
            self.metrics.increment("events_dropped", kind=kind)

    def _ensure_worker(self) -> None:
        loop = asyncio.get_running_loop()
        if self._queue is None or self._loop is not loop:
            self._loop = loop
            self._queue = asyncio.Queue(maxsize=self._max_pending)
            self._worker = None
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run())

    async def _run(self) -> None:
        while True:
            kind, job = await self._queue.get()
            try:
                async with asyncio.timeout(self.timeout_seconds):
                    await job()
                self.metrics.increment("events_delivered", kind=kind)
            except TimeoutError:
                logger.error("%s job timed out after %ss", kind, self.timeout_seconds)
                self.metrics.increment("events_failed", kind=kind)
            except Exception:
                logger.exception("%s job failed", kind)
                self.metrics.increment("events_failed", kind=kind)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued job has run."""
        if self._queue is not None and self._worker is not None:
            await self._queue.join()

    async def stop(self) -> None:
        await self.drain()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
