"""Pytest configuration and fixtures."""

from datetime import timedelta
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.memory_store import MemoryTokenStore
from app.core.qr_tokens import QRTokenConfig, QRTokenManager
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.db.types import utcnow
from app.main import app
from app.models.job import ContentType, Job, JobStatus, PriceTier
from app.models.user import User, UserRole
from app.services.token_store import SQLTokenStore

# Test database URL (use in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_QR_SECRET = "test-qr-secret"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def _create_user(db_session: AsyncSession, email: str, name: str, role: UserRole | None) -> User:
    user = User(email=email, name=name, role=role.value if role else None)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def requester(db_session: AsyncSession) -> User:
    """Create a requester."""
    return await _create_user(db_session, "requester@example.com", "Rita Requester", UserRole.REQUESTER)


@pytest.fixture
async def other_requester(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "other@example.com", "Oscar Other", UserRole.REQUESTER)


@pytest.fixture
async def helper(db_session: AsyncSession) -> User:
    """Create a helper."""
    return await _create_user(db_session, "helper@example.com", "Hank Helper", UserRole.HELPER)


@pytest.fixture
async def second_helper(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "helper2@example.com", "Hana Helper", UserRole.HELPER)


@pytest.fixture
async def new_user(db_session: AsyncSession) -> User:
    """A signed-in user who has not picked a role yet."""
    return await _create_user(db_session, "new@example.com", "Nora New", None)


@pytest.fixture
async def open_job(db_session: AsyncSession, requester: User) -> Job:
    """Create an open job owned by ``requester``."""
    job = Job(
        requester_id=requester.id,
        title="Wedding reception",
        description="Photos of the first dance and speeches.",
        location="Harbour Hall",
        event_time=utcnow() + timedelta(days=2),
        content_type=ContentType.PHOTOS.value,
        price_tier=PriceTier.STANDARD.value,
        status=JobStatus.OPEN.value,
    )
    db_session.add(job)
    await db_session.commit()
    await db_session.refresh(job)
    return job


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user."""
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(data={"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def qr_config() -> QRTokenConfig:
    return QRTokenConfig(secret=TEST_QR_SECRET)


@pytest.fixture
def sql_token_manager(db_session: AsyncSession, qr_config: QRTokenConfig) -> QRTokenManager:
    """Token manager over the test database."""
    return QRTokenManager(SQLTokenStore(db_session), qr_config)


@pytest.fixture
def memory_store() -> MemoryTokenStore:
    return MemoryTokenStore()


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self) -> None:
        self.now = utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_manager(memory_store: MemoryTokenStore, qr_config: QRTokenConfig, clock: FakeClock) -> QRTokenManager:
    """Token manager over the in-memory store with a controllable clock."""
    return QRTokenManager(memory_store, qr_config, clock=clock)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
