"""
Credential Verifier

Checks a presented password against the stored bcrypt hash and returns a
verified identity detached from the database session.
"""

from functools import lru_cache
from typing import Optional
from uuid import UUID

import bcrypt
from pydantic import BaseModel

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.repositories.user_repository import IUserRepository
from sessionkeeper.domain.entities import User
from sessionkeeper.libs.result import Error, Result, Return


class VerifiedIdentity(BaseModel):
    """Snapshot of the user fields the session core needs"""

    user_id: UUID
    email: str
    name: str = ""
    role: str
    tenant_id: Optional[UUID] = None

    @classmethod
    def from_user(cls, user: User) -> "VerifiedIdentity":
        return cls(
            user_id=user.id,
            email=user.email,
            name=user.name or "",
            role=user.role.value if hasattr(user.role, "value") else str(user.role),
            tenant_id=user.tenant_id,
        )


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(rounds))


class CredentialVerifier:
    """
    Business Rules:
    - Constant-time password comparison to prevent timing attacks
    - A hash check runs even when the email is unknown
    - Unknown email and wrong password produce the same error
    - Inactive users are rejected only after the password matched
    """

    def __init__(self, bcrypt_rounds: int = 12):
        self.bcrypt_rounds = bcrypt_rounds

    async def verify(
        self, users: IUserRepository, email: str, password: str
    ) -> Result[VerifiedIdentity]:
        user = await users.get_by_email(email)

        if user is None:
            # Hash anyway so unknown emails take as long as wrong passwords
            bcrypt.checkpw(password.encode(), _dummy_hash(self.bcrypt_rounds))
            return Return.err(
                Error(ErrorCode.INVALID_CREDENTIALS, "Invalid email or password")
            )

        try:
            password_valid = bcrypt.checkpw(password.encode(), user.password_hash.encode())
        except ValueError:
            # Stored hash is not a bcrypt hash
            password_valid = False

        if not password_valid:
            return Return.err(
                Error(ErrorCode.INVALID_CREDENTIALS, "Invalid email or password")
            )

        if not user.is_active:
            return Return.err(Error(ErrorCode.ACCOUNT_INACTIVE, "User account is inactive"))

        return Return.ok(VerifiedIdentity.from_user(user))
