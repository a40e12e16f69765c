"""
SessionLock Entity

One row per user, updated at the start of every unit of work that counts,
evicts and inserts sessions for that user.
"""

from datetime import datetime
from uuid import UUID

from sqlmodel import Column, DateTime, Field, SQLModel

from sessionkeeper.domain.base import utcnow


class SessionLock(SQLModel, table=True):
    """
    SessionLock entity - per-user row lock.

    Business Rules:
    - Created lazily on the user's first login
    - generation increases by one every time the lock is taken
    """

    __tablename__ = "session_locks"

    user_id: UUID = Field(foreign_key="users.id", primary_key=True)
    generation: int = Field(default=0)
    acquired_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
