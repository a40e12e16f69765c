"""
Unit tests for Validate Token Use Case
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.token_codec import TokenClaims, hash_token
from sessionkeeper.app.use_cases.auth import ValidateTokenUseCase
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import RevokedReason
from tests.fixtures.factories import build_session


def _issue(codec, user_id, tenant_id=None, issued_at=None, ttl=timedelta(minutes=15)):
    issued_at = issued_at or utcnow()
    return codec.issue(
        TokenClaims(
            subject_id=user_id,
            role="driver",
            tenant_id=tenant_id,
            issued_at=issued_at,
            expires_at=issued_at + ttl,
        )
    )


@pytest.mark.asyncio
async def test_valid_token_returns_context(mock_uow, codec):
    """Test round trip: a freshly issued token validates to its subject"""
    user_id, tenant_id = uuid4(), uuid4()
    token = _issue(codec, user_id, tenant_id)
    session = build_session(user_id, tenant_id)
    mock_uow.sessions.get_by_access_token_hash.return_value = session

    result = await ValidateTokenUseCase(mock_uow, codec).execute(token)

    assert result.is_ok()
    assert result.value.user_id == str(user_id)
    assert result.value.tenant_id == str(tenant_id)
    assert result.value.session_id == str(session.id)
    mock_uow.sessions.get_by_access_token_hash.assert_awaited_once_with(hash_token(token))


@pytest.mark.asyncio
async def test_bad_signature_skips_store(mock_uow, codec):
    result = await ValidateTokenUseCase(mock_uow, codec).execute("garbage")

    assert result.error.code == ErrorCode.TOKEN_MALFORMED
    mock_uow.sessions.get_by_access_token_hash.assert_not_called()


@pytest.mark.asyncio
async def test_expired_token(mock_uow, codec):
    token = _issue(codec, uuid4(), issued_at=utcnow() - timedelta(hours=1))

    result = await ValidateTokenUseCase(mock_uow, codec).execute(token)

    assert result.error.code == ErrorCode.TOKEN_EXPIRED


@pytest.mark.asyncio
async def test_unknown_session(mock_uow, codec):
    """Test a well-signed token with no stored session is rejected"""
    result = await ValidateTokenUseCase(mock_uow, codec).execute(_issue(codec, uuid4()))

    assert result.error.code == ErrorCode.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_revoked_session(mock_uow, codec):
    """Test revocation takes effect before the token's own expiry"""
    user_id = uuid4()
    mock_uow.sessions.get_by_access_token_hash.return_value = build_session(
        user_id, revoked=True, revoked_reason=RevokedReason.logout
    )

    result = await ValidateTokenUseCase(mock_uow, codec).execute(_issue(codec, user_id))

    assert result.error.code == ErrorCode.TOKEN_REVOKED


@pytest.mark.asyncio
async def test_session_access_expiry_is_enforced(mock_uow, codec):
    user_id = uuid4()
    mock_uow.sessions.get_by_access_token_hash.return_value = build_session(
        user_id, issued_at=utcnow() - timedelta(minutes=20)
    )

    result = await ValidateTokenUseCase(mock_uow, codec).execute(_issue(codec, user_id))

    assert result.error.code == ErrorCode.TOKEN_EXPIRED


@pytest.mark.asyncio
async def test_subject_mismatch(mock_uow, codec):
    mock_uow.sessions.get_by_access_token_hash.return_value = build_session(uuid4())

    result = await ValidateTokenUseCase(mock_uow, codec).execute(_issue(codec, uuid4()))

    assert result.error.code == ErrorCode.TOKEN_MALFORMED
