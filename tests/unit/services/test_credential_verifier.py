"""
Unit tests for CredentialVerifier
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.credential_verifier import CredentialVerifier
from sessionkeeper.domain.entities import Role, UserStatus
from tests.fixtures.factories import DEFAULT_PASSWORD, build_user


@pytest.fixture
def users():
    repo = MagicMock()
    repo.get_by_email = AsyncMock(return_value=None)
    return repo


@pytest.mark.asyncio
async def test_valid_credentials_return_identity(users):
    user = build_user(role=Role.manager)
    users.get_by_email.return_value = user

    result = await CredentialVerifier(4).verify(users, user.email, DEFAULT_PASSWORD)

    assert result.is_ok()
    assert result.value.user_id == user.id
    assert result.value.role == "manager"
    assert result.value.email == user.email


@pytest.mark.asyncio
async def test_unknown_email_and_wrong_password_look_the_same(users):
    """No account enumeration: both failures carry the same code and message"""
    verifier = CredentialVerifier(4)

    unknown = await verifier.verify(users, "nobody@example.com", "whatever")

    users.get_by_email.return_value = build_user()
    wrong = await verifier.verify(users, "user@example.com", "WrongPassword!")

    assert unknown.error == wrong.error
    assert unknown.error.code == ErrorCode.INVALID_CREDENTIALS


@pytest.mark.asyncio
async def test_inactive_user_rejected_after_password_check(users):
    users.get_by_email.return_value = build_user(status=UserStatus.inactive)

    result = await CredentialVerifier(4).verify(users, "user@example.com", DEFAULT_PASSWORD)

    assert result.is_err()
    assert result.error.code == ErrorCode.ACCOUNT_INACTIVE


@pytest.mark.asyncio
async def test_inactive_user_with_wrong_password_is_invalid_credentials(users):
    """Account state is not revealed to someone without the password"""
    users.get_by_email.return_value = build_user(status=UserStatus.inactive)

    result = await CredentialVerifier(4).verify(users, "user@example.com", "WrongPassword!")

    assert result.error.code == ErrorCode.INVALID_CREDENTIALS


@pytest.mark.asyncio
async def test_corrupt_stored_hash_is_invalid_credentials(users):
    users.get_by_email.return_value = build_user(password_hash="not-a-bcrypt-hash")

    result = await CredentialVerifier(4).verify(users, "user@example.com", DEFAULT_PASSWORD)

    assert result.error.code == ErrorCode.INVALID_CREDENTIALS
