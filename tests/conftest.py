import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.rate_limit import matches_limiter, users_limiter
from app.core.security import create_access_token
from app.database import Base, get_db
from app.main import app
from app.models.match import Match
from app.models.profile import Profile
from app.models.user import User
from app.schemas.profile import ProfileCreate
from app.services import match_store, profile_service

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

ALL_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _create_test_engine() -> AsyncEngine:
    if not TEST_DATABASE_URL.startswith("sqlite"):
        return create_async_engine(TEST_DATABASE_URL, echo=False)

    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = _create_test_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_maker() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_rate_limits():
    matches_limiter.reset()
    users_limiter.reset()
    yield
    matches_limiter.reset()
    users_limiter.reset()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def create_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory for users known to the identity provider."""
    counter = {"n": 0}

    async def _create(name: str | None = None, is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            auth_subject=f"test|{counter['n']}",
            name=name or f"Student {counter['n']}",
            email=f"student{counter['n']}@example.com",
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create


@pytest.fixture
def create_profile(db_session: AsyncSession) -> Callable[..., Awaitable[Profile]]:
    async def _create(
        user: User,
        subjects: list[str] | None = None,
        learning_style: int = 1,
        availability: list[str] | None = None,
        performance_level: int = 3,
    ) -> Profile:
        data = ProfileCreate(
            subjects=subjects or ["Math"],
            learning_style=learning_style,
            availability=availability or ALL_DAYS,
            performance_level=performance_level,
        )
        return await profile_service.upsert_profile(db_session, user.id, data)

    return _create


@pytest.fixture
def create_match(db_session: AsyncSession) -> Callable[..., Awaitable[Match]]:
    async def _create(user_a: User, user_b: User, compatibility: int = 80) -> Match:
        match = await match_store.create_match(db_session, user_a.id, user_b.id, compatibility)
        await db_session.commit()
        return match

    return _create


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.auth_subject, name=user.name, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers
