"""
Pytest configuration and fixtures for Taskboard API tests
"""
import os
import tempfile

# Settings are read at import time; configure the test environment first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ADMIN_INVITE_TOKEN", "test-admin-invite")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENABLE_JSON_LOGGING", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="taskboard-uploads-"))

import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.database import get_db, Base
from app.db.crud.user import create_user_db
from app.db.models import UserRole
from app.auth.security import Hasher, create_token_for_user

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "TestPassword123!"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database and session for each test"""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database session override"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_test_user(db: AsyncSession, name: str, email: str, role: UserRole = UserRole.MEMBER, is_active: bool = True):
    return await create_user_db(db, {
        "name": name,
        "email": email,
        "hashed_password": Hasher.get_password_hash(TEST_PASSWORD),
        "role": role,
        "is_active": is_active
    })


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture
async def admin_user(db_session: AsyncSession):
    return await create_test_user(db_session, "Ada Admin", "admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
async def member_user(db_session: AsyncSession):
    return await create_test_user(db_session, "Mia Member", "mia@example.com")


@pytest.fixture
async def other_member(db_session: AsyncSession):
    return await create_test_user(db_session, "Olu Other", "olu@example.com")


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return auth_headers(admin_user)


@pytest.fixture
def member_headers(member_user) -> dict:
    return auth_headers(member_user)


@pytest.fixture
def other_headers(other_member) -> dict:
    return auth_headers(other_member)


@pytest.fixture
async def test_user_data():
    """Test user data fixture"""
    return {
        "name": "Test User",
        "email": "test@example.com",
        "password": TEST_PASSWORD,
        "password_confirm": TEST_PASSWORD
    }


@pytest.fixture
async def authenticated_user(client: AsyncClient, test_user_data):
    """Register and authenticate a member through the API"""
    response = await client.post("/api/v1/auth/register", json=test_user_data)
    assert response.status_code == 201

    data = response.json()
    return {
        "access_token": data["access_token"],
        "user": data,
        "user_data": test_user_data
    }


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory for extra users in the current test database"""

    async def _make_user(name: str, email: str, role: UserRole = UserRole.MEMBER, is_active: bool = True):
        return await create_test_user(db_session, name, email, role=role, is_active=is_active)

    return _make_user


@pytest.fixture
def headers_for():
    return auth_headers
