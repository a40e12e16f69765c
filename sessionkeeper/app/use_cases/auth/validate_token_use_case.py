"""
Validate Token Use Case

Authenticates a request from its bearer access token. The signature and
expiry are checked first, then the session store so that revocation takes
effect immediately.
"""

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.token_codec import TokenCodec, TokenError, hash_token
from sessionkeeper.app.services.unit_of_work import UnitOfWork, store_operation
from sessionkeeper.domain.base import utcnow
from sessionkeeper.libs.result import Error, Result, Return
from .dtos import UserContext


class ValidateTokenUseCase:
    def __init__(self, uow: UnitOfWork, codec: TokenCodec):
        self.uow = uow
        self.codec = codec

    @store_operation
    async def execute(self, access_token: str) -> Result[UserContext]:
        try:
            claims = self.codec.parse(access_token)
        except TokenError as exc:
            return Return.err(Error(exc.code, exc.message))

        async with self.uow:
            session = await self.uow.sessions.get_by_access_token_hash(hash_token(access_token))

            if session is None:
                return Return.err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))
            if session.revoked:
                return Return.err(Error(ErrorCode.TOKEN_REVOKED, "Session has been revoked"))
            if session.access_expires_at <= utcnow():
                return Return.err(Error(ErrorCode.TOKEN_EXPIRED, "Access token has expired"))
            if session.user_id != claims.subject_id:
                return Return.err(
                    Error(ErrorCode.TOKEN_MALFORMED, "Token subject does not match session")
                )

            session_id = str(session.id)

        return Return.ok(
            UserContext(
                user_id=str(claims.subject_id),
                role=claims.role,
                tenant_id=str(claims.tenant_id) if claims.tenant_id else None,
                session_id=session_id,
            )
        )
