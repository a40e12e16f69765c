from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from sessionkeeper.domain.entities import User


class IUserRepository(ABC):
    """User repository interface - read-only access to externally owned users"""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        pass
