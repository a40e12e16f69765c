import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from sessionkeeper.adapter.services.audit_sink import DatabaseAuditSink
from sessionkeeper.adapter.services.notifier import LoggingNotifier
from sessionkeeper.app.services.events import EventDispatcher
from sessionkeeper.app.services.metrics import InMemoryMetrics
from sessionkeeper.app.services.token_codec import TokenCodec
from sessionkeeper.app.use_cases.auth import SessionPolicy
from .error import ClientError, ServerError

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    if exc.status_code == 503:
        message = "Service temporarily unavailable"
    else:
        message = "Internal server error"
    error_dict = {"code": exc.base_error.code, "message": message}
    logger.error(f"Server error: {exc.base_error.code} ({exc.base_error.message})")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


def create_app(ApplicationConfig, engine=None, session_factory=None) -> FastAPI:
    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if engine is None or session_factory is None:
        from sessionkeeper.depends import AsyncSessionLocal
        from sessionkeeper.depends import engine as default_engine

        engine = engine or default_engine
        session_factory = session_factory or AsyncSessionLocal

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        yield
        await app.state.dispatcher.stop()

    app = FastAPI(title="SessionKeeper", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    metrics = InMemoryMetrics()
    app.state.metrics = metrics
    app.state.policy = SessionPolicy.from_config(ApplicationConfig)
    app.state.bcrypt_rounds = ApplicationConfig.BCRYPT_ROUNDS
    app.state.codec = TokenCodec(
        ApplicationConfig.JWT_SECRET,
        algorithm=ApplicationConfig.JWT_ALGORITHM,
        issuer=ApplicationConfig.JWT_ISSUER,
    )
    app.state.dispatcher = EventDispatcher(
        LoggingNotifier(),
        DatabaseAuditSink(session_factory),
        metrics=metrics,
        max_pending=ApplicationConfig.EVENT_QUEUE_SIZE,
        timeout_seconds=ApplicationConfig.EVENT_TIMEOUT_SECONDS,
    )

    from sessionkeeper.api.routes import auth, health_check, sessions

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(sessions.router, tags=["Sessions"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
