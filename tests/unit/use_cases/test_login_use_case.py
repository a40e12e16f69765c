"""
Unit tests for Login Use Case
"""

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.credential_verifier import CredentialVerifier
from sessionkeeper.app.services.unit_of_work import StoreUnavailable
from sessionkeeper.app.use_cases.auth import LoginUseCase
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import AuditAction, RevokedReason, Role, UserStatus
from tests.fixtures.factories import DEFAULT_PASSWORD, build_session, build_user


def _emitted_actions(dispatcher):
    return [c.args[0].action for c in dispatcher.emit.call_args_list]


@pytest.fixture
def use_case(mock_uow, codec, policy, dispatcher, metrics):
    return LoginUseCase(
        mock_uow,
        codec,
        policy,
        dispatcher,
        verifier=CredentialVerifier(4),
        metrics=metrics,
    )


@pytest.mark.asyncio
async def test_successful_login(use_case, mock_uow, codec, dispatcher, metrics):
    """Test successful login returns a token pair bound to a new session"""
    # Arrange
    tenant_id = uuid4()
    user = build_user(role=Role.manager, tenant_id=tenant_id)
    mock_uow.users.get_by_email.return_value = user

    # Act
    result = await use_case.execute(
        user.email, DEFAULT_PASSWORD, ip_address="10.0.0.7", user_agent="Firefox"
    )

    # Assert
    assert result.is_ok()
    pair = result.value
    assert pair.token_type == "Bearer"
    assert pair.expires_in == 15 * 60

    claims = codec.parse(pair.access_token)
    assert claims.subject_id == user.id
    assert claims.role == "manager"
    assert claims.tenant_id == tenant_id

    mock_uow.sessions.lock_user.assert_awaited_once_with(user.id)
    created = mock_uow.sessions.create.call_args.args[0]
    assert str(created.id) == pair.session_id
    assert created.ip_address == "10.0.0.7"
    assert created.user_agent == "Firefox"
    assert created.access_token_hash != pair.access_token
    mock_uow.commit.assert_awaited_once()

    assert _emitted_actions(dispatcher) == [AuditAction.login_succeeded]
    dispatcher.notify_session_eviction.assert_not_called()
    assert metrics.get("logins_succeeded") == 1


@pytest.mark.asyncio
async def test_login_at_limit_evicts_and_notifies_once(use_case, mock_uow, dispatcher):
    """Test the oldest session is evicted and the user notified with the count"""
    # Arrange
    user = build_user()
    now = utcnow()
    active = [
        build_session(user.id, issued_at=now - timedelta(hours=3 - i)) for i in range(3)
    ]
    mock_uow.users.get_by_email.return_value = user
    mock_uow.sessions.list_active_by_user.return_value = active

    # Act
    result = await use_case.execute(user.email, DEFAULT_PASSWORD)

    # Assert
    assert result.is_ok()
    ids, reason, _ = mock_uow.sessions.revoke_many.call_args.args
    assert ids == [active[0].id]
    assert reason == RevokedReason.session_limit_exceeded

    dispatcher.notify_session_eviction.assert_called_once()
    identity, metadata, count = dispatcher.notify_session_eviction.call_args.args
    assert identity.user_id == user.id
    assert metadata.session_id == result.value.session_id
    assert count == 1
    assert _emitted_actions(dispatcher) == [
        AuditAction.session_evicted,
        AuditAction.login_succeeded,
    ]


@pytest.mark.asyncio
async def test_login_invalid_password(use_case, mock_uow, dispatcher, metrics):
    """Test wrong password fails without touching sessions"""
    mock_uow.users.get_by_email.return_value = build_user()

    result = await use_case.execute("user@example.com", "WrongPassword!")

    assert result.is_err()
    assert result.error.code == ErrorCode.INVALID_CREDENTIALS
    mock_uow.sessions.lock_user.assert_not_called()
    mock_uow.sessions.create.assert_not_called()
    mock_uow.commit.assert_not_called()
    assert _emitted_actions(dispatcher) == [AuditAction.login_failed]
    assert metrics.get("logins_failed", code=ErrorCode.INVALID_CREDENTIALS) == 1


@pytest.mark.asyncio
async def test_login_unknown_email(use_case, mock_uow):
    result = await use_case.execute("nobody@example.com", DEFAULT_PASSWORD)

    assert result.error.code == ErrorCode.INVALID_CREDENTIALS
    mock_uow.sessions.create.assert_not_called()


@pytest.mark.asyncio
async def test_login_inactive_account(use_case, mock_uow):
    mock_uow.users.get_by_email.return_value = build_user(status=UserStatus.inactive)

    result = await use_case.execute("user@example.com", DEFAULT_PASSWORD)

    assert result.error.code == ErrorCode.ACCOUNT_INACTIVE
    mock_uow.sessions.create.assert_not_called()


@pytest.mark.asyncio
async def test_login_retries_locked_section_once(use_case, mock_uow):
    """Test a store failure while holding the lock is retried once"""
    user = build_user()
    mock_uow.users.get_by_email.return_value = user
    mock_uow.sessions.lock_user.side_effect = [StoreUnavailable("lock insert race"), 2]

    result = await use_case.execute(user.email, DEFAULT_PASSWORD)

    assert result.is_ok()
    assert mock_uow.sessions.lock_user.await_count == 2
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_login_fails_after_second_store_failure(use_case, mock_uow, dispatcher):
    """Test no session is issued when eviction cannot be completed"""
    user = build_user()
    mock_uow.users.get_by_email.return_value = user
    mock_uow.sessions.lock_user.side_effect = StoreUnavailable("database is locked")

    result = await use_case.execute(user.email, DEFAULT_PASSWORD)

    assert result.is_err()
    assert result.error.code == ErrorCode.LIMIT_EVICTION_FAILURE
    mock_uow.commit.assert_not_called()
    dispatcher.emit.assert_not_called()


@pytest.mark.asyncio
async def test_login_store_unavailable_during_verification(use_case, mock_uow):
    mock_uow.users.get_by_email.side_effect = StoreUnavailable("connection refused")

    result = await use_case.execute("user@example.com", DEFAULT_PASSWORD)

    assert result.error.code == ErrorCode.STORE_UNAVAILABLE


@pytest.mark.asyncio
async def test_login_times_out(use_case, mock_uow):
    """Test a hung store surfaces as STORE_UNAVAILABLE"""
    user = build_user()
    mock_uow.users.get_by_email.return_value = user
    mock_uow.timeout_seconds = 0.05

    async def hang(user_id):
        await asyncio.sleep(5)

    mock_uow.sessions.lock_user.side_effect = hang

    result = await use_case.execute(user.email, DEFAULT_PASSWORD)

    assert result.error.code == ErrorCode.STORE_UNAVAILABLE
    mock_uow.commit.assert_not_called()
