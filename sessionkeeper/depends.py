from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from sessionkeeper.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from sessionkeeper.api.error import error_to_exception, unauthorized
from sessionkeeper.app.errors import ErrorCode
from sessionkeeper.app.services.events import EventDispatcher
from sessionkeeper.app.services.metrics import MetricsCollector
from sessionkeeper.app.services.token_codec import TokenCodec
from sessionkeeper.app.services.unit_of_work import UnitOfWork
from sessionkeeper.app.use_cases.auth import SessionPolicy, UserContext, ValidateTokenUseCase
from sessionkeeper.config import ApplicationConfig
from sessionkeeper.libs.result import Error


def build_engine(db_uri: str):
    engine = create_async_engine(db_uri, echo=False, future=True)
    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_busy_timeout(dbapi_connection, connection_record):
            # Writers queue on the database lock instead of failing at once
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA busy_timeout = 5000")
            cursor.close()

    return engine


engine = build_engine(ApplicationConfig.DB_URI)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session, timeout_seconds=ApplicationConfig.STORE_TIMEOUT_SECONDS)


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.codec


def get_session_policy(request: Request) -> SessionPolicy:
    return request.app.state.policy


def get_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.dispatcher


def get_metrics(request: Request) -> MetricsCollector:
    return request.app.state.metrics


def get_bcrypt_rounds(request: Request) -> int:
    return request.app.state.bcrypt_rounds


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    uow: UnitOfWork = Depends(get_unit_of_work),
    codec: TokenCodec = Depends(get_token_codec),
) -> UserContext:
    """
    Dependency to authenticate the caller from the Authorization header.

    The access token is checked for signature and expiry, then against the
    session store, so a revoked session is rejected on its next request.

    Raises:
        ClientError: 401 with the uniform body for any authentication failure
    """
    if credentials is None:
        raise unauthorized(Error(ErrorCode.TOKEN_MALFORMED, "Missing bearer token"))

    result = await ValidateTokenUseCase(uow, codec).execute(credentials.credentials)
    if result.is_err():
        raise error_to_exception(result.error)

    return result.value
