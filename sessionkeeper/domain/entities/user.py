"""
User Entity

Owned by the surrounding system; the session core only reads it.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from sessionkeeper.domain.base import utcnow
from .enums import Role, UserStatus


class User(SQLModel, table=True):
    """
    User entity - a person who can hold sessions.

    Business Rules:
    - Email must be unique across all users
    - Password stored as bcrypt hash
    - tenant_id is empty only for platform-level (master) users
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    name: str = Field(default="", max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    role: Role = Field(default=Role.driver)
    tenant_id: Optional[UUID] = Field(default=None, index=True)
    status: UserStatus = Field(default=UserStatus.active)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.active
