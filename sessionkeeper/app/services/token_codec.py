"""
Token Codec

Creates and parses signed access tokens. Pure function of the signing key:
it never consults the session store.
"""

import hashlib
import secrets
from calendar import timegm
from datetime import UTC, datetime
from typing import Optional
from uuid import UUID, uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from pydantic import BaseModel, Field

from sessionkeeper.app.errors import ErrorCode

REQUIRED_CLAIMS = ("sub", "role", "iat", "exp", "jti")


class TokenError(Exception):
    code = ErrorCode.TOKEN_MALFORMED

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TokenMalformed(TokenError):
    code = ErrorCode.TOKEN_MALFORMED


class InvalidSignature(TokenError):
    code = ErrorCode.INVALID_SIGNATURE


class TokenExpired(TokenError):
    code = ErrorCode.TOKEN_EXPIRED


class TokenClaims(BaseModel):
    """Claims carried by an access token"""

    subject_id: UUID
    role: str
    tenant_id: Optional[UUID] = None
    issued_at: datetime
    expires_at: datetime
    token_id: str = Field(default_factory=lambda: uuid4().hex)


def _to_timestamp(value: datetime) -> int:
    # Naive datetimes are UTC throughout the codebase
    return timegm(value.utctimetuple())


def _from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, UTC).replace(tzinfo=None)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used as the session store lookup key."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_refresh_token() -> str:
    """Opaque refresh secret; carries no claims."""
    return secrets.token_urlsafe(48)


class TokenCodec:
    """
    Issue and parse HS256 access tokens.

    Business Rules:
    - Structural problems raise TokenMalformed
    - Signature or algorithm mismatch raises InvalidSignature
    - An exp claim in the past raises TokenExpired
    - Every token carries a random jti so that two tokens issued in the
      same second for the same user never hash to the same value
    """

    def __init__(self, secret: str, algorithm: str = "HS256", issuer: Optional[str] = None):
        if not secret:
            raise ValueError("Token signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer

    def issue(self, claims: TokenClaims) -> str:
        payload = {
            "sub": str(claims.subject_id),
            "role": claims.role,
            "tenant_id": str(claims.tenant_id) if claims.tenant_id else None,
            "iat": _to_timestamp(claims.issued_at),
            "exp": _to_timestamp(claims.expires_at),
            "jti": claims.token_id,
        }
        if self._issuer:
            payload["iss"] = self._issuer
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def parse(self, token: str) -> TokenClaims:
        try:
            unverified = jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenMalformed(f"Token is not a valid JWT: {exc}") from exc

        missing = [name for name in REQUIRED_CLAIMS if name not in unverified]
        if missing:
            raise TokenMalformed(f"Token is missing claims: {', '.join(missing)}")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired("Token has expired") from exc
        except JWTClaimsError as exc:
            raise TokenMalformed(f"Invalid token claims: {exc}") from exc
        except JWTError as exc:
            raise InvalidSignature(f"Token signature rejected: {exc}") from exc

        try:
            return TokenClaims(
                subject_id=UUID(payload["sub"]),
                role=payload["role"],
                tenant_id=UUID(payload["tenant_id"]) if payload.get("tenant_id") else None,
                issued_at=_from_timestamp(payload["iat"]),
                expires_at=_from_timestamp(payload["exp"]),
                token_id=payload["jti"],
            )
        except (TypeError, ValueError) as exc:
            raise TokenMalformed(f"Invalid claim value: {exc}") from exc
