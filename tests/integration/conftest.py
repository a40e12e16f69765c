import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from sessionkeeper.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from sessionkeeper.api.app import create_app
from sessionkeeper.config import ApplicationConfig
from sessionkeeper.depends import build_engine, get_unit_of_work
from tests.fixtures.factories import build_user


class IntegrationConfig(ApplicationConfig):
    JWT_SECRET = "integration-test-secret"
    MAX_ACTIVE_SESSIONS = 3
    REFRESH_REPLAY_REVOKES_ALL = True
    BCRYPT_ROUNDS = 4
    STORE_TIMEOUT_SECONDS = 10
    LOG_LEVEL = "INFO"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(engine, session_factory):
    app = create_app(IntegrationConfig, engine=engine, session_factory=session_factory)

    # One database session per request so concurrent requests do not share one
    async def override_get_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(
                session, timeout_seconds=IntegrationConfig.STORE_TIMEOUT_SECONDS
            )

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    yield app
    await app.state.dispatcher.stop()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def seed_user(db_session):
    """Factory fixture: persist a user and return it"""

    async def _seed(**kwargs):
        user = build_user(**kwargs)
        db_session.add(user)
        await db_session.commit()
        return user

    return _seed


@pytest.fixture
def login(client):
    """Factory fixture: log a user in and return the JSON token pair"""

    async def _login(email, password="SecurePass123!", user_agent="pytest", expect=200):
        response = await client.post(
            "/auth/login",
            json={"email": email, "password": password},
            headers={"User-Agent": user_agent},
        )
        assert response.status_code == expect, response.text
        return response.json()

    return _login