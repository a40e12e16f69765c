from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from sessionkeeper.api.error import error_to_exception
from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.events import EventDispatcher
from sessionkeeper.app.services.metrics import MetricsCollector
from sessionkeeper.app.services.unit_of_work import UnitOfWork
from sessionkeeper.app.use_cases.auth import SessionPolicy, UserContext
from sessionkeeper.app.use_cases.sessions import (
    ListSessionsUseCase,
    RevokeCountResult,
    RevokeSessionResult,
    RevokeSessionsUseCase,
    SecurityAlert,
    SessionDashboard,
    SessionInfo,
)
from sessionkeeper.depends import (
    get_current_user,
    get_dispatcher,
    get_metrics,
    get_session_policy,
    get_unit_of_work,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class ActiveSessionsResponse(BaseModel):
    active_sessions: List[SessionInfo]
    count: int


class SecurityAlertsResponse(BaseModel):
    security_alerts: List[SecurityAlert]
    count: int
    has_concerns: bool


class RevokeAllSessionsRequest(BaseModel):
    """Request to revoke all sessions for a user"""

    user_id: UUID = Field(..., description="User ID whose sessions will be revoked")


@router.get("", status_code=status.HTTP_200_OK, response_model=ActiveSessionsResponse)
async def list_active_sessions(
    current_user: UserContext = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    policy: SessionPolicy = Depends(get_session_policy),
):
    """
    List Active Sessions

    Returns the caller's active sessions, newest first, with the current
    one flagged. Tokens are never included.
    """
    use_case = ListSessionsUseCase(uow, policy.max_active_sessions)
    result = await use_case.list_active(
        UUID(current_user.user_id), UUID(current_user.session_id)
    )

    if result.is_err():
        raise error_to_exception(result.error)

    return {"active_sessions": result.value, "count": len(result.value)}


@router.get(
    "/security-alerts",
    status_code=status.HTTP_200_OK,
    response_model=SecurityAlertsResponse,
)
async def security_alerts(
    current_user: UserContext = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    policy: SessionPolicy = Depends(get_session_policy),
):
    """
    Security Alerts

    Flags suspicious patterns in the caller's active sessions, such as
    logins from many IP addresses or too many devices.
    """
    use_case = ListSessionsUseCase(uow, policy.max_active_sessions)
    result = await use_case.security_alerts(UUID(current_user.user_id))

    if result.is_err():
        raise error_to_exception(result.error)

    alerts = result.value
    return {"security_alerts": alerts, "count": len(alerts), "has_concerns": bool(alerts)}


@router.get("/dashboard", status_code=status.HTTP_200_OK, response_model=SessionDashboard)
async def dashboard(
    current_user: UserContext = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    policy: SessionPolicy = Depends(get_session_policy),
):
    """
    Session Dashboard

    Active sessions, security alerts, recent login history and limit
    warnings in one response.
    """
    use_case = ListSessionsUseCase(uow, policy.max_active_sessions)
    result = await use_case.dashboard(
        UUID(current_user.user_id), UUID(current_user.session_id)
    )

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


@router.delete(
    "/revoke-all-except-current",
    status_code=status.HTTP_200_OK,
    response_model=RevokeCountResult,
)
async def revoke_all_except_current(
    current_user: UserContext = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    metrics: MetricsCollector = Depends(get_metrics),
):
    """
    Revoke All Other Sessions

    Logs out every other device. The session behind the presented access
    token stays valid.

    Raises:
        - 401 Unauthorized: Invalid or revoked access token
        - 503 Service Unavailable: Session store unavailable
    """
    use_case = RevokeSessionsUseCase(uow, dispatcher, metrics=metrics)
    result = await use_case.revoke_all_except_current(
        UUID(current_user.user_id), UUID(current_user.session_id)
    )

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionResult,
)
async def revoke_session(
    session_id: UUID,
    current_user: UserContext = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    metrics: MetricsCollector = Depends(get_metrics),
):
    """
    Revoke Specific Session

    Ends one of the caller's own sessions. Revoking an already revoked
    session succeeds with revoked=false.

    Raises:
        - 401 Unauthorized: Invalid or revoked access token
        - 404 Not Found: No such session owned by the caller
        - 503 Service Unavailable: Session store unavailable
    """
    use_case = RevokeSessionsUseCase(uow, dispatcher, metrics=metrics)
    result = await use_case.revoke_session(session_id, UUID(current_user.user_id))

    if result.is_err():
        raise error_to_exception(
            result.error,
            {ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND},
        )

    return result.value


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeCountResult,
)
async def revoke_all_sessions(
    body: RevokeAllSessionsRequest,
    current_user: UserContext = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    metrics: MetricsCollector = Depends(get_metrics),
):
    """
    Revoke All Sessions

    Revokes every session of a user. Useful for:
    - Security incidents (account compromise)
    - Admin-initiated logout

    Authorization:
    - Users can revoke their own sessions
    - Tenant admins can revoke sessions of users in their tenant
    - Master users can revoke sessions of any user

    Raises:
        - 403 Forbidden: Insufficient permissions
        - 404 Not Found: User not found
        - 503 Service Unavailable: Session store unavailable
    """
    use_case = RevokeSessionsUseCase(uow, dispatcher, metrics=metrics)
    result = await use_case.revoke_all_for_user(
        body.user_id,
        UUID(current_user.user_id),
        UUID(current_user.tenant_id) if current_user.tenant_id else None,
        current_user.role,
    )

    if result.is_err():
        raise error_to_exception(
            result.error,
            {ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND},
        )

    return result.value
