"""
tests/conftest.py

Test fixtures for API integration and unit tests.
Includes async clients, fake users, fake delivery channels,
an in-memory SQLite database and dependency overrides.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("EMAILS_ENABLED", "false")

# --- Imports ---
from collections.abc import AsyncGenerator, Callable, Coroutine, Generator
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import app
from sosauto.booking.models import Booking
from sosauto.booking.schemas import BookingRead
from sosauto.core.dependencies import get_cache, get_current_user, get_dispatcher
from sosauto.core.email import OutgoingEmail
from sosauto.core.limiter import limiter
from sosauto.core.tokens import create_access_token
from sosauto.database.base import Base
from sosauto.database.enums import BookingStatus, ProviderRole, UserRole
from sosauto.database.models import User
from sosauto.database.session import build_sessionmaker, get_db
from sosauto.notification.dispatcher import NotificationDispatcher
from sosauto.provider.models import ServiceProvider
from sosauto.review.schemas import ReviewRead

limiter.enabled = False


# --- Fake Delivery Channels ---


class FakeTransport:
    """Records pushes instead of writing to sockets."""

    def __init__(self) -> None:
        self.emitted: list[tuple[UUID, dict[str, Any]]] = []

    async def emit(self, user_id: UUID, payload: dict[str, Any]) -> None:
        self.emitted.append((user_id, payload))


class FakeMailer:
    """Records emails instead of calling SendGrid."""

    def __init__(self) -> None:
        self.sent: list[OutgoingEmail] = []

    async def send(self, email: OutgoingEmail) -> None:
        self.sent.append(email)


class FailingMailer:
    """Mail transport that always blows up."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, email: OutgoingEmail) -> None:
        self.attempts += 1
        raise RuntimeError("SMTP relay unreachable")


# --- Core Test Fixtures ---


@pytest.fixture(scope="session")
def transport() -> ASGITransport:
    """Fixture for ASGI transport."""
    return ASGITransport(app=app)


@pytest_asyncio.fixture(scope="function")
async def async_client(transport: ASGITransport) -> AsyncGenerator[AsyncClient, None]:
    """Fixture for HTTP async client."""
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture(autouse=True)
def clear_overrides() -> Generator[None, None, None]:
    yield
    app.dependency_overrides.clear()


# --- Fake User Fixtures ---


def _user(role: UserRole, name: str, email: str, phone: str) -> User:
    return User(
        id=uuid4(),
        name=name,
        email=email,
        phone=phone,
        role=role,
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def fake_admin_user() -> User:
    """Fixture for a fake admin user."""
    return _user(UserRole.ADMIN, "Admin Test", "admin.test@sosauto.dz", "0550000000")


@pytest.fixture
def fake_client_user() -> User:
    """Fixture for a fake client user."""
    return _user(UserRole.CLIENT, "Client Test", "client.test@sosauto.dz", "0551111111")


@pytest.fixture
def fake_mechanic_user() -> User:
    """Fixture for a fake mechanic user."""
    return _user(UserRole.MECHANIC, "Mechanic Test", "mechanic.test@sosauto.dz", "0552222222")


# --- Dependency Override Fixtures ---


@pytest_asyncio.fixture
async def override_get_db() -> AsyncGenerator[None, None]:
    """Override for the database dependency."""

    async def _override() -> AsyncGenerator[AsyncMock, None]:
        yield AsyncMock()

    app.dependency_overrides[get_db] = _override
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def fake_mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def dispatcher(fake_transport: FakeTransport, fake_mailer: FakeMailer) -> NotificationDispatcher:
    return NotificationDispatcher(transport=fake_transport, mailer=fake_mailer, email_timeout=1.0)


@pytest.fixture
def override_dispatcher(dispatcher: NotificationDispatcher) -> Generator[NotificationDispatcher, None, None]:
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_cache] = lambda: None
    yield dispatcher
    app.dependency_overrides.pop(get_dispatcher, None)
    app.dependency_overrides.pop(get_cache, None)


@pytest_asyncio.fixture
async def mock_current_admin_user(fake_admin_user: User) -> AsyncGenerator[User, None]:
    """Mock the current user as an admin."""
    app.dependency_overrides[get_current_user] = lambda: fake_admin_user
    yield fake_admin_user
    app.dependency_overrides.pop(get_current_user, None)


@pytest_asyncio.fixture
async def mock_current_client_user(fake_client_user: User) -> AsyncGenerator[User, None]:
    """Mock the current user as a client."""
    app.dependency_overrides[get_current_user] = lambda: fake_client_user
    yield fake_client_user
    app.dependency_overrides.pop(get_current_user, None)


@pytest_asyncio.fixture
async def mock_current_mechanic_user(fake_mechanic_user: User) -> AsyncGenerator[User, None]:
    """Mock the current user as a mechanic."""
    app.dependency_overrides[get_current_user] = lambda: fake_mechanic_user
    yield fake_mechanic_user
    app.dependency_overrides.pop(get_current_user, None)


# --- Fake Data Fixtures (Schema Instances) ---


@pytest.fixture
def fake_booking_read(fake_client_user: User) -> BookingRead:
    """Fixture for a fake BookingRead."""
    now = datetime.now(timezone.utc)
    return BookingRead(
        id=uuid4(),
        provider_id=uuid4(),
        provider_name="Garage El Amel",
        provider_phone="0553333333",
        client_id=fake_client_user.id,
        client_name=fake_client_user.name,
        client_phone=fake_client_user.phone or "",
        date=now + timedelta(days=2),
        issue="Engine overheating on the highway",
        status=BookingStatus.PENDING,
        price=None,
        cancellation_reason=None,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def fake_review_read(fake_client_user: User) -> ReviewRead:
    """Fixture for a fake ReviewRead."""
    return ReviewRead(
        id=uuid4(),
        provider_id=uuid4(),
        client_id=fake_client_user.id,
        booking_id=uuid4(),
        client_name=fake_client_user.name,
        rating=5,
        comment="Fast and honest work",
        created_at=datetime.now(timezone.utc),
    )


# --- In-Memory Database (Integration) ---


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Session used by tests to seed and inspect data."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def live_app(
    session_factory: async_sessionmaker[AsyncSession],
    override_dispatcher: NotificationDispatcher,
) -> Generator[NotificationDispatcher, None, None]:
    """Routes every request to the in-memory database with fake delivery channels."""

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    yield override_dispatcher
    app.dependency_overrides.pop(get_db, None)


# --- Seed Helpers ---


UserFactory = Callable[..., Coroutine[Any, Any, User]]
ProviderFactory = Callable[..., Coroutine[Any, Any, ServiceProvider]]
BookingFactory = Callable[..., Coroutine[Any, Any, Booking]]


@pytest.fixture
def make_user(db_session: AsyncSession) -> UserFactory:
    async def _make(role: UserRole = UserRole.CLIENT, name: str | None = None, email: str | None = None) -> User:
        suffix = uuid4().hex[:8]
        user = User(
            name=name or f"{role.value.title()} {suffix}",
            email=email or f"{role.value.lower()}_{suffix}@sosauto.dz",
            phone="0550123456",
            role=role,
            is_active=True,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_provider(db_session: AsyncSession) -> ProviderFactory:
    async def _make(owner: User, **fields: Any) -> ServiceProvider:
        values: dict[str, Any] = {
            "name": f"{owner.name} Services",
            "role": ProviderRole.MECHANIC,
            "wilaya_id": 16,
            "commune": "Bab Ezzouar",
            "phone": "0559999999",
            "is_verified": True,
        }
        values.update(fields)
        provider = ServiceProvider(user_id=owner.id, **values)
        db_session.add(provider)
        await db_session.commit()
        return provider

    return _make


@pytest.fixture
def make_booking(db_session: AsyncSession) -> BookingFactory:
    """Inserts a booking directly, bypassing the API and its notifications."""

    async def _make(
        client: User,
        provider: ServiceProvider,
        status: BookingStatus = BookingStatus.PENDING,
    ) -> Booking:
        booking = Booking(
            provider_id=provider.id,
            provider_name=provider.name,
            provider_phone=provider.phone,
            client_id=client.id,
            client_name=client.name,
            client_phone=client.phone or "",
            date=datetime.now(timezone.utc) + timedelta(days=1),
            issue="Brakes squeaking",
            status=status,
        )
        db_session.add(booking)
        await db_session.commit()
        return booking

    return _make


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Builds a Bearer header carrying a real token for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
