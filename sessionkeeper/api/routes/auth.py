from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from sessionkeeper.api.error import error_to_exception
from sessionkeeper.app.services.credential_verifier import CredentialVerifier
from sessionkeeper.app.services.events import EventDispatcher
from sessionkeeper.app.services.metrics import MetricsCollector
from sessionkeeper.app.services.token_codec import TokenCodec
from sessionkeeper.app.services.unit_of_work import UnitOfWork
from sessionkeeper.app.use_cases.auth import (
    LoginUseCase,
    LogoutResponse,
    LogoutUseCase,
    RefreshTokenUseCase,
    SessionPolicy,
    TokenPair,
    UserContext,
)
from sessionkeeper.depends import (
    get_bcrypt_rounds,
    get_current_user,
    get_dispatcher,
    get_metrics,
    get_session_policy,
    get_token_codec,
    get_unit_of_work,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    email: str = Field(..., min_length=3, max_length=255, description="User email address")
    password: str = Field(..., min_length=1, description="User password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=TokenPair)
async def login(
    body: LoginRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    codec: TokenCodec = Depends(get_token_codec),
    policy: SessionPolicy = Depends(get_session_policy),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    metrics: MetricsCollector = Depends(get_metrics),
    bcrypt_rounds: int = Depends(get_bcrypt_rounds),
):
    """
    User Login

    Authenticates the user and opens a new session. When the user already
    has the maximum number of active sessions, the oldest ones are ended.

    Raises:
        - 401 Unauthorized: Invalid credentials or inactive account
        - 503 Service Unavailable: Session store unavailable
        - 500 Internal Server Error: Server error
    """
    use_case = LoginUseCase(
        uow,
        codec,
        policy,
        dispatcher,
        verifier=CredentialVerifier(bcrypt_rounds),
        metrics=metrics,
    )
    result = await use_case.execute(
        body.email,
        body.password,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload

    Validates incoming refresh request.
    """

    refresh_token: str = Field(..., min_length=1, description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=TokenPair)
async def refresh(
    body: RefreshRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    codec: TokenCodec = Depends(get_token_codec),
    policy: SessionPolicy = Depends(get_session_policy),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    metrics: MetricsCollector = Depends(get_metrics),
):
    """
    Refresh Token Rotation

    Exchanges a refresh token for a new token pair. The presented refresh
    token stops working immediately. Presenting it again is treated as
    token theft.

    Raises:
        - 401 Unauthorized: Unknown, expired, revoked or replayed refresh token
        - 503 Service Unavailable: Session store unavailable
        - 500 Internal Server Error: Server error
    """
    use_case = RefreshTokenUseCase(uow, codec, policy, dispatcher, metrics=metrics)
    result = await use_case.execute(
        body.refresh_token,
        client_ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


class LogoutRequest(BaseModel):
    all_sessions: bool = Field(False, description="End every session instead of only this one")


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    body: Optional[LogoutRequest] = None,
    current_user: UserContext = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    metrics: MetricsCollector = Depends(get_metrics),
):
    """
    Logout

    Ends the current session, or all of the user's sessions.

    Raises:
        - 401 Unauthorized: Invalid or revoked access token
        - 503 Service Unavailable: Session store unavailable
    """
    all_sessions = body.all_sessions if body else False

    use_case = LogoutUseCase(uow, dispatcher, metrics=metrics)
    result = await use_case.execute(current_user, all_sessions=all_sessions)

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=UserContext)
async def me(current_user: UserContext = Depends(get_current_user)):
    """Identity behind the presented access token."""
    return current_user
