import json
import os
from collections.abc import AsyncGenerator, Callable
from typing import Any
from unittest.mock import MagicMock

# Test configuration must be in place before the application is imported
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RESET_EMAIL_RETRY_DELAY_SECONDS"] = "0"
os.environ["LOG_FORMAT"] = "console"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config import Settings, settings
from app.core.redis_client import get_redis_client
from app.core.security import TokenService, get_password_hash
from app.database import get_db, get_session_factory
from app.dependencies import get_notification_gateway
from app.main import app
from app.models import metadata
from app.schemas.trips import TripCreate
from app.services.auth_service import AuthService
from app.services.notification_service import NotificationGateway
from app.services.trip_service import TripService
from app.services.user_service import UserService

DEFAULT_PASSWORD = "pw123456"


@pytest.fixture
def test_settings() -> Settings:
    """Settings with SMS gateway credentials configured."""
    return settings.model_copy(
        update={"sms_gateway_username": "sms-user", "sms_gateway_api_key": "sms-key"}
    )


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh SQLite database per test, shared by requests and detached tasks."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


class NotificationRecorder:
    """Stand-in for the notification service behind ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[int] = []
        self.default_status = 200

    def respond_with(self, *status_codes: int) -> None:
        """Queue status codes for the next calls; afterwards the default applies."""
        self.responses.extend(status_codes)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status_code = self.responses.pop(0) if self.responses else self.default_status
        return httpx.Response(status_code, json={"ok": status_code < 400})

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def sent_to(self, path: str) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.url.path == path]


@pytest.fixture
def notifications() -> NotificationRecorder:
    return NotificationRecorder()


@pytest.fixture
def gateway(
    test_settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    notifications: NotificationRecorder,
) -> NotificationGateway:
    return NotificationGateway(
        test_settings,
        session_factory,
        transport=httpx.MockTransport(notifications.handler),
    )


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(settings)


class TaskCollector:
    """Collects detached work so tests decide when it runs."""

    def __init__(self) -> None:
        self.tasks: list[tuple[Callable[..., Any], tuple, dict]] = []

    def __call__(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self.tasks.append((func, args, kwargs))

    async def run_all(self) -> None:
        tasks, self.tasks = self.tasks, []
        for func, args, kwargs in tasks:
            await func(*args, **kwargs)


@pytest.fixture
def scheduler() -> TaskCollector:
    return TaskCollector()


@pytest.fixture
def auth_service(
    db_session: AsyncSession,
    token_service: TokenService,
    gateway: NotificationGateway,
    scheduler: TaskCollector,
    test_settings: Settings,
) -> AuthService:
    return AuthService(
        db=db_session,
        tokens=token_service,
        notifications=gateway,
        schedule=scheduler,
        config=test_settings,
    )


@pytest.fixture
def mock_redis() -> MagicMock:
    """Redis stand-in that always reports the first request of a window."""
    redis_client = MagicMock()
    redis_client.incr.return_value = 1
    return redis_client


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    gateway: NotificationGateway,
    mock_redis: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_notification_gateway] = lambda: gateway
    app.dependency_overrides[get_redis_client] = lambda: mock_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory inserting users directly through the store."""

    async def _make_user(
        email: str = "user@example.com",
        password: str | None = DEFAULT_PASSWORD,
        role: str = "user",
        is_verified: bool = True,
        phone_number: str | None = None,
        **extra: Any,
    ) -> dict:
        return await UserService.create_user(
            db_session,
            {
                "email": email,
                "password_hash": get_password_hash(password) if password else None,
                "role": role,
                "is_verified": is_verified,
                "phone_number": phone_number,
                "first_name": "Test",
                "last_name": "User",
                **extra,
            },
        )

    return _make_user


@pytest_asyncio.fixture
async def test_user(make_user: Callable[..., Any]) -> dict:
    """Verified regular user."""
    return await make_user(email="traveler@example.com", phone_number="+33612345678")


@pytest_asyncio.fixture
async def admin_user(make_user: Callable[..., Any]) -> dict:
    return await make_user(email="admin@example.com", role="admin")


@pytest_asyncio.fixture
async def premium_user(make_user: Callable[..., Any]) -> dict:
    return await make_user(email="premium@example.com", role="premium")


@pytest.fixture
def auth_headers(test_user: dict, token_service: TokenService) -> dict:
    """Create authentication headers for testing protected endpoints."""
    return {"Authorization": f"Bearer {token_service.issue_access(test_user)}"}


@pytest.fixture
def admin_headers(admin_user: dict, token_service: TokenService) -> dict:
    return {"Authorization": f"Bearer {token_service.issue_access(admin_user)}"}


@pytest.fixture
def premium_headers(premium_user: dict, token_service: TokenService) -> dict:
    return {"Authorization": f"Bearer {token_service.issue_access(premium_user)}"}


@pytest.fixture
def make_trip(db_session: AsyncSession, test_user: dict) -> Callable[..., Any]:
    """Factory creating roadtrips authored by ``test_user`` unless told otherwise."""

    async def _make_trip(title: str = "Route 66", user_id: Any = None, **fields: Any) -> dict:
        return await TripService.create_trip(
            db_session,
            user_id or test_user["id"],
            TripCreate(title=title, **fields),
        )

    return _make_trip
