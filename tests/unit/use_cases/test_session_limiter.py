"""
Unit tests for SessionLimiter
"""

from datetime import timedelta
from uuid import UUID, uuid4

import pytest

from sessionkeeper.app.use_cases.sessions import SessionLimiter
from sessionkeeper.domain.base import utcnow
from sessionkeeper.domain.entities import RevokedReason
from tests.fixtures.factories import build_session


@pytest.mark.asyncio
async def test_no_eviction_below_limit(mock_uow, metrics):
    """With N-2 active sessions nothing is revoked"""
    user_id = uuid4()
    now = utcnow()
    mock_uow.sessions.list_active_by_user.return_value = [
        build_session(user_id, issued_at=now - timedelta(minutes=1))
    ]

    evicted = await SessionLimiter(mock_uow, 3, metrics).make_room(user_id, now)

    assert evicted == []
    mock_uow.sessions.revoke_many.assert_not_called()
    assert metrics.get("sessions_evicted") == 0


@pytest.mark.asyncio
async def test_evicts_oldest_when_at_limit(mock_uow, metrics):
    """At N active sessions the oldest one makes room"""
    user_id = uuid4()
    now = utcnow()
    oldest = build_session(user_id, issued_at=now - timedelta(hours=3))
    middle = build_session(user_id, issued_at=now - timedelta(hours=2))
    newest = build_session(user_id, issued_at=now - timedelta(hours=1))
    mock_uow.sessions.list_active_by_user.return_value = [newest, oldest, middle]

    evicted = await SessionLimiter(mock_uow, 3, metrics).make_room(user_id, now)

    assert evicted == [oldest]
    mock_uow.sessions.revoke_many.assert_awaited_once_with(
        [oldest.id], RevokedReason.session_limit_exceeded, now
    )
    assert metrics.get("sessions_evicted") == 1


@pytest.mark.asyncio
async def test_evicts_down_to_limit_minus_one(mock_uow):
    """Excess sessions from a lowered limit are all evicted in one pass"""
    user_id = uuid4()
    now = utcnow()
    sessions = [
        build_session(user_id, issued_at=now - timedelta(minutes=10 - i)) for i in range(5)
    ]
    mock_uow.sessions.list_active_by_user.return_value = sessions

    evicted = await SessionLimiter(mock_uow, 2).make_room(user_id, now)

    assert evicted == sessions[:4]


@pytest.mark.asyncio
async def test_equal_timestamps_evict_lowest_id_first(mock_uow):
    user_id = uuid4()
    now = utcnow()
    issued = now - timedelta(minutes=5)
    first = build_session(user_id, issued_at=issued)
    second = build_session(user_id, issued_at=issued)
    first.id = UUID("00000000-0000-0000-0000-000000000001")
    second.id = UUID("00000000-0000-0000-0000-000000000002")
    mock_uow.sessions.list_active_by_user.return_value = [second, first]

    evicted = await SessionLimiter(mock_uow, 2).make_room(user_id, now)

    assert evicted == [first]


@pytest.mark.asyncio
async def test_limit_of_one_evicts_every_active_session(mock_uow):
    user_id = uuid4()
    now = utcnow()
    only = build_session(user_id, issued_at=now - timedelta(minutes=1))
    mock_uow.sessions.list_active_by_user.return_value = [only]

    evicted = await SessionLimiter(mock_uow, 1).make_room(user_id, now)

    assert evicted == [only]


def test_limit_must_be_positive(mock_uow):
    with pytest.raises(ValueError):
        SessionLimiter(mock_uow, 0)
