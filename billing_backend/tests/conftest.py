"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from billing_backend.app.core.config import settings

# Cheap hashing for tests; must be set before any password is hashed
settings.bcrypt_rounds = 4

from billing_backend.app.main import app
from billing_backend.app.db.session import get_db, Base
from billing_backend.app.core.dependencies import get_broadcast_jobs, get_event_broker, get_messaging_gateway
from billing_backend.app.core.exceptions import GatewayError
from billing_backend.app.core.jwt import create_access_token
from billing_backend.app.core.security import get_password_hash
from billing_backend.app.models.customer import Customer
from billing_backend.app.models.enums import (
    CustomerCategory,
    GatewayState,
    TransactionDirection,
    TransactionStatus,
    UserRole,
)
from billing_backend.app.models.transaction import Transaction
from billing_backend.app.models.user import User
from billing_backend.app.services.events import EventBroker
from billing_backend.app.services.messaging.broadcast import BroadcastJobManager
from billing_backend.app.services.messaging.gateway import MessagingGateway
from billing_backend.app.services.messaging.transport import TransportState, WhatsAppTransport

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class FakeTransport(WhatsAppTransport):
    """
    In-memory WhatsApp transport.

    `states` is consumed one poll at a time; the last entry repeats.
    Sends to chat ids in `fail_for` raise GatewayError.
    """

    def __init__(self):
        self.states = [TransportState(GatewayState.READY)]
        self.sent = []
        self.fail_for = set()
        self.start_error = None
        self.started = False
        self.closed = False

    async def start(self):
        if self.start_error:
            raise self.start_error
        self.started = True

    async def stop(self):
        self.started = False

    async def fetch_state(self):
        if len(self.states) > 1:
            return self.states.pop(0)
        return self.states[0]

    async def send_text(self, chat_id, text):
        if chat_id in self.fail_for:
            raise GatewayError("Send rejected by gateway")
        self.sent.append((chat_id, text))

    async def aclose(self):
        self.closed = True


@pytest.fixture
def broker():
    return EventBroker(max_queue_size=10)


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
async def gateway(fake_transport, broker):
    gw = MessagingGateway(
        fake_transport,
        broker,
        TestingSessionLocal,
        poll_seconds=3600,
        broadcast_delay=0
    )
    broker.status_provider = gw.current_status
    yield gw
    await gw.shutdown()


@pytest.fixture
async def ready_gateway(gateway):
    """Gateway whose session is up and ready to send."""
    await gateway.start()
    assert gateway.is_ready
    return gateway


@pytest.fixture
async def broadcast_jobs(gateway, broker):
    jobs = BroadcastJobManager(gateway, broker)
    yield jobs
    await jobs.shutdown()


@pytest.fixture(autouse=True)
def apply_overrides(broker, gateway, broadcast_jobs):
    """Point the app at the test database and the per-test services."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_broker] = lambda: broker
    app.dependency_overrides[get_messaging_gateway] = lambda: gateway
    app.dependency_overrides[get_broadcast_jobs] = lambda: broadcast_jobs
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def test_engine():
    return engine


@pytest.fixture
def session_factory():
    return TestingSessionLocal


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


def token_for(user):
    return create_access_token(data={"sub": user.username, "user_id": user.id, "role": user.role.value})


@pytest.fixture
def make_user(db_session):
    """Factory fixture: insert a user and return it."""

    async def _make_user(username, password="secret123", role=UserRole.STAFF, is_active=True, full_name=None):
        user = User(
            username=username,
            password_hash=get_password_hash(password),
            full_name=full_name or username.title(),
            role=role,
            is_active=is_active
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_customer(db_session):
    """Factory fixture: insert a customer and return it."""

    async def _make_customer(name, category=CustomerCategory.INTERNET, phone="081234567890", **fields):
        customer = Customer(name=name, category=category, phone=phone, **fields)
        db_session.add(customer)
        await db_session.commit()
        await db_session.refresh(customer)
        return customer

    return _make_customer


@pytest.fixture
def make_transaction(db_session):
    """Factory fixture: insert a transaction snapshotting the given customer."""

    async def _make_transaction(
        customer,
        amount,
        direction=TransactionDirection.INCOME,
        status=TransactionStatus.PENDING,
        category="Monthly internet"
    ):
        transaction = Transaction(
            customer_id=customer.id,
            customer_name=customer.name,
            customer_category=customer.category,
            category=category,
            amount=amount,
            direction=direction,
            status=status
        )
        db_session.add(transaction)
        await db_session.commit()
        await db_session.refresh(transaction)
        return transaction

    return _make_transaction


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _auth_headers


@pytest.fixture
async def admin_user(make_user):
    return await make_user("admin", "admin123", role=UserRole.ADMIN, full_name="Administrator")


@pytest.fixture
async def staff_user(make_user):
    return await make_user("staff", "staff123", role=UserRole.STAFF, full_name="Staff Kasir")


@pytest.fixture
def admin_headers(admin_user, auth_headers):
    return auth_headers(admin_user)


@pytest.fixture
def staff_headers(staff_user, auth_headers):
    return auth_headers(staff_user)


@pytest.fixture
def drain():
    """Collect every event currently buffered on a channel."""

    async def _drain(channel):
        events = []
        while channel.pending():
            events.append(await channel.get())
        return events

    return _drain
