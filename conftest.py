import os

# Must be set before any microblog module reads settings
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256-signing"
os.environ["REVOCATION_BACKEND"] = "memory"

from datetime import datetime, timedelta, timezone
from functools import lru_cache

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import microblog.models  # noqa: F401
from microblog.core.revocation import MemoryRevocationStore
from microblog.core.security import get_password_hash
from microblog.core.tokens import TokenService, get_token_service
from microblog.db.database import get_db
from microblog.main import app
from microblog.models.user import User
from microblog.schemas.enums import Role

TEST_PASSWORD = "password123"
TEST_SECRET_KEY = os.environ["SECRET_KEY"]


@lru_cache(maxsize=1)
def hashed_test_password() -> str:
    return get_password_hash(TEST_PASSWORD)


class MutableClock:
    """Clock whose current time tests can move forward"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest_asyncio.fixture(scope="function")
async def async_test_engine():
    """Fresh in-memory database for each test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_test_session(async_test_engine):
    TestSessionLocal = sessionmaker(
        bind=async_test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )

    async with TestSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def db_session(async_test_session: AsyncSession):
    """Provide database session for tests"""
    return async_test_session


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def revocation_store(clock):
    return MemoryRevocationStore(clock=clock)


@pytest.fixture
def token_service(revocation_store, clock):
    return TokenService(
        secret_key=TEST_SECRET_KEY,
        revocation_store=revocation_store,
        expires_in_seconds=30000,
        issuer="microblog",
        clock=clock,
    )


@pytest_asyncio.fixture
async def client(async_test_session: AsyncSession, token_service: TokenService):
    """Create test client with database session and token service overrides"""
    async def override_get_db():
        yield async_test_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_service] = lambda: token_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    # Clean up
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory inserting users straight into the test database"""
    async def _make_user(username: str, role: Role = Role.USER) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            hashed_password=hashed_test_password(),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers(token_service: TokenService):
    """Build bearer headers for a user"""
    def _auth_headers(user: User) -> dict:
        token = token_service.issue(user.id, user.username, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
