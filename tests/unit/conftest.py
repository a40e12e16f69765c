import pytest
from unittest.mock import AsyncMock, MagicMock

from sessionkeeper.app.services.events import EventDispatcher
from sessionkeeper.app.services.metrics import InMemoryMetrics
from sessionkeeper.app.services.token_codec import TokenCodec
from sessionkeeper.app.use_cases.auth import SessionPolicy


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with all repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    uow.timeout_seconds = None

    uow.users = MagicMock()
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.get_by_email = AsyncMock(return_value=None)

    uow.sessions = MagicMock()
    uow.sessions.lock_user = AsyncMock(return_value=1)
    uow.sessions.get_by_id = AsyncMock(return_value=None)
    uow.sessions.get_by_access_token_hash = AsyncMock(return_value=None)
    uow.sessions.get_by_refresh_token_hash = AsyncMock(return_value=None)
    uow.sessions.list_active_by_user = AsyncMock(return_value=[])
    uow.sessions.list_recent_by_user = AsyncMock(return_value=[])
    uow.sessions.create = AsyncMock(side_effect=lambda session: session)
    uow.sessions.revoke = AsyncMock(return_value=True)
    uow.sessions.revoke_many = AsyncMock(side_effect=lambda ids, reason, now: len(ids))
    uow.sessions.revoke_all_by_user_id = AsyncMock(return_value=0)
    uow.sessions.revoke_all_except_session = AsyncMock(return_value=0)

    return uow


@pytest.fixture
def codec():
    return TokenCodec("unit-test-secret", issuer="sessionkeeper")


@pytest.fixture
def policy():
    return SessionPolicy(max_active_sessions=3)


@pytest.fixture
def dispatcher():
    """Records what would be delivered without running a worker"""
    return MagicMock(spec=EventDispatcher)


@pytest.fixture
def metrics():
    return InMemoryMetrics()
