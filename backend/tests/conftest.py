"""
Pytest configuration and shared fixtures for the laundry backend tests.

Provides an in-memory SQLite session, seeded users and services, a fake
notification dispatcher, and an httpx client bound to the FastAPI app.
"""
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from config import settings
from deps import get_side_effects

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only-0123456789"
settings.smtp_host = ""


# ── Fakes ─────────────────────────────────────────────────────────────


class FakeDispatcher:
    """Records send() calls; returns `result` or raises `error`."""

    def __init__(self, result: bool = True, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[dict] = []
        self.sent_total = 0

    async def send(self, user_id, channel, template, context):
        self.calls.append(
            {"user_id": user_id, "channel": channel, "template": template, "context": context}
        )
        if self.error:
            raise self.error
        if self.result:
            self.sent_total += 1
        return self.result

    def templates(self) -> list[str]:
        return [c["template"] for c in self.calls]


class FakeSubscriber:
    """Stands in for a WebSocket: collects send_json payloads."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: list[dict] = []

    async def send_json(self, data):
        if self.fail:
            raise ConnectionError("socket closed")
        self.messages.append(data)


# ── Database Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


# ── Side-effect Fixtures ─────────────────────────────────────────────


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def event_bus():
    from services.event_bus import EventBus

    return EventBus()


@pytest.fixture
def effects(dispatcher, event_bus):
    from services.side_effects import SideEffects

    return SideEffects(dispatcher, event_bus, timeout_seconds=1.0)


# ── Test Data Fixtures ────────────────────────────────────────────────


async def _make_user(db: AsyncSession, email: str, name: str, role: str):
    from db_models import User

    user = User(email=email, name=name, role=role, phone="08123456789", address="Jl. Merdeka 1")
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def customer(db_session: AsyncSession):
    return await _make_user(db_session, "budi@example.com", "Budi", "CUSTOMER")


@pytest_asyncio.fixture
async def other_customer(db_session: AsyncSession):
    return await _make_user(db_session, "sari@example.com", "Sari", "CUSTOMER")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession):
    return await _make_user(db_session, "admin@example.com", "Admin", "ADMIN")


@pytest_asyncio.fixture
async def courier(db_session: AsyncSession):
    return await _make_user(db_session, "kurir@example.com", "Kurir", "COURIER")


@pytest_asyncio.fixture
async def wash_service(db_session: AsyncSession):
    """Regular wash at 8000 per kg."""
    from db_models import Service

    service = Service(name="Regular Wash", base_price=8000, unit="kg", active=True)
    db_session.add(service)
    await db_session.commit()
    await db_session.refresh(service)
    return service


@pytest_asyncio.fixture
async def express_service(db_session: AsyncSession):
    """Express wash at 20000 per kg."""
    from db_models import Service

    service = Service(name="Express Wash", base_price=20000, unit="kg", active=True)
    db_session.add(service)
    await db_session.commit()
    await db_session.refresh(service)
    return service


@pytest.fixture
def make_order(db_session, customer, wash_service, effects):
    """Factory: create an order for `customer` through the lifecycle engine."""
    from services import lifecycle_service

    async def _make(pickup_method="SELF", qty=2, service=None, user=None, **kwargs):
        return await lifecycle_service.create_order(
            db_session,
            user_id=(user or customer).id,
            pickup_method=pickup_method,
            items=[{"service_id": (service or wash_service).id, "qty": qty}],
            effects=effects,
            **kwargs,
        )

    return _make


@pytest.fixture
def force_status(db_session):
    """Write a status straight to the row, bypassing the state machine."""
    from db_models import Order

    async def _force(order_id: int, status: str, **values):
        await db_session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(status=status, **values)
            .execution_options(synchronize_session=False)
        )
        await db_session.commit()

    return _force


# ── HTTP Fixtures ─────────────────────────────────────────────────────


def auth_headers(user) -> dict:
    from middleware.auth import issue_access_token

    token = issue_access_token(user_id=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, effects):
    """
    httpx client bound to the app in the test's event loop.

    Overrides get_db with the in-memory session and get_side_effects with
    the fake dispatcher wiring.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_side_effects] = lambda: effects

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    """Bearer-token headers for a user row."""
    return auth_headers
