# social_service/tests/conftest.py

import logging
import random
import string

import pytest
from fakeredis import aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from social_service.api import dependencies
from social_service.config import AppConfig
from social_service.domain.moderation import GroupRole
from social_service.gateways.group_gateway import GroupGateway
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.database import Base, build_engine, create_database
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork
from social_service.main import Application
from social_service.realtime.engine import DispatchEngine
from social_service.realtime.registry import ConnectionRegistry
from social_service.realtime.services import ServiceFactory
from social_service.tests.fakes import FakeTransport


@pytest.fixture(scope="function")
def app_config():
    """
    Provide a test configuration with an in-memory SQLite database.
    """
    return AppConfig(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        REDIS_HOST="localhost",
        REDIS_PORT=6379,
        SECRET_KEY="test_secret_key",
        PROJECT_NAME="Test Social API",
        PROJECT_VERSION="1.0.0",
        PROJECT_DESCRIPTION="Test Social API",
        API_V1_STR="/api/v1",
        ALGORITHM="HS256",
        ACCESS_TOKEN_EXPIRE_MINUTES=30,
    )


@pytest.fixture(scope="function")
async def mock_redis():
    """Provide a fake Redis client for testing."""
    redis = aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture(scope="function")
async def engine(app_config):
    """One shared in-memory connection with the schema created."""
    engine = build_engine(app_config.DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(engine):
    """Provide a SQLAlchemy session for testing."""
    async_session_factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False
    )
    session = async_session_factory()
    yield session
    await session.close()


@pytest.fixture(scope="function")
async def uow(db_session):
    """Provide a UnitOfWork bound to the test session."""
    return UnitOfWork(db_session)


@pytest.fixture(scope="function")
def security_service(app_config):
    return SecurityService(app_config)


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """Override the get_session dependency to use the test session."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture(scope="function")
async def application(app_config, mock_redis, engine):
    application = Application(config=app_config)
    application.database = create_database(engine)
    application.redis_client.client = mock_redis
    return application


@pytest.fixture(scope="function")
async def app(application):
    """Create the FastAPI app with the test database."""
    return application.create_app()


@pytest.fixture(scope="function")
async def app_with_db(app, override_get_db):
    """Override dependencies to use the test database session."""
    app.dependency_overrides[dependencies.get_session] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app_with_db):
    """Provide an HTTP client with the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app_with_db), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture(scope="function")
def make_user(db_session, uow, security_service):
    """Factory creating committed users with the password ``testpassword``."""

    async def _make_user(prefix: str = "user"):
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=8))
        user_create = schemas.UserCreate(
            username=f"{prefix}_{suffix}",
            email=f"{prefix}_{suffix}@example.com",
            password="testpassword",
        )
        user = await UserGateway(db_session, uow).create_user(
            user_create, security_service
        )
        assert user is not None
        return user

    return _make_user


@pytest.fixture(scope="function")
def befriend(db_session, uow):
    async def _befriend(first, second):
        await UserGateway(db_session, uow).add_friendship(first.id, second.id)

    return _befriend


@pytest.fixture(scope="function")
def make_group(db_session, uow):
    """Factory creating a group; ``roles`` maps user id to a non-member role.

    Extra keyword arguments are group settings such as ``is_public``.
    """

    async def _make_group(creator, members=(), roles=None, name="Test Group", **settings):
        gateway = GroupGateway(db_session, uow)
        group = await gateway.create_group(
            schemas.GroupCreate(
                name=name, member_ids=[m.id for m in members], **settings
            ),
            creator.id,
        )
        await uow.commit()
        for user_id, role in (roles or {}).items():
            gateway.set_role(group, user_id, GroupRole(role).value)
        if roles:
            await uow.commit()
        return await gateway.get_group(group.id)

    return _make_group


@pytest.fixture(scope="function")
def set_mute(db_session):
    """Write a mute row directly, bypassing policy, for arranging test state."""

    async def _set_mute(group_id, user_id, muted_until, muted_by=None):
        db_session.add(
            models.GroupMute(
                group_id=group_id,
                user_id=user_id,
                muted_by=muted_by,
                muted_until=muted_until,
            )
        )
        await db_session.commit()

    return _set_mute


@pytest.fixture(scope="function")
def deactivate(db_session):
    async def _deactivate(user):
        await db_session.execute(
            update(models.User).where(models.User.id == user.id).values(is_active=False)
        )
        await db_session.commit()

    return _deactivate


@pytest.fixture(scope="function")
async def test_user(make_user):
    return await make_user("testuser")


@pytest.fixture(scope="function")
async def test_user2(make_user):
    return await make_user("testuser2")


@pytest.fixture(scope="function")
def auth_headers_for(security_service):
    def _headers(user):
        token, _ = security_service.create_access_token(user.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture(scope="function")
async def auth_header(client, test_user):
    """Provide an authorization header for authenticated requests."""
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": test_user.username, "password": "testpassword"},
    )
    assert response.status_code == 200, f"Login failed: {response.json()}"
    access_token = response.json().get("access_token")
    assert access_token is not None, "Access token was not returned in the response"
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture(scope="function")
def registry():
    return ConnectionRegistry()


@pytest.fixture(scope="function")
def event_dispatcher():
    return EventDispatcher()


@pytest.fixture(scope="function")
def dispatch_engine(engine, app_config, security_service, registry, event_dispatcher):
    services = ServiceFactory(
        create_database(engine),
        app_config,
        security_service,
        registry,
        event_dispatcher,
    )
    return DispatchEngine(registry, services, logging.getLogger("SocialAPI.test"))


@pytest.fixture(scope="function")
def open_socket(dispatch_engine):
    """Open a fake socket on the engine, optionally joining as a user."""

    async def _open(user=None):
        transport = FakeTransport()
        connection = dispatch_engine.connect(transport)
        if user is not None:
            await dispatch_engine.handle_frame(
                connection, {"event": "join", "data": {"userId": user.id}}
            )
        return connection, transport

    return _open
