"""
Pytest fixtures for the test database, HTTP client, users and events.

Every test gets its own SQLite file, so tests are isolated without a running
PostgreSQL. The engine comes from izuran.db.session.make_engine and therefore
uses the same BEGIN IMMEDIATE transaction handling as a local run, which is
what makes the concurrency tests meaningful.
"""

import os

# Must be set before izuran is imported: settings are cached on first use.
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./izuran-unused.db")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from izuran.main import app
from izuran.db.base import Base
from izuran.db.session import get_db, make_engine, make_sessionmaker
from izuran.core.security import create_access_token, hash_password
from izuran.models.user import User
from izuran.models.event import Event
from izuran.models.ticket_limit import TicketLimit
from izuran.services.interfaces.notifier import TicketNotifier, TicketConfirmation
from izuran.services.notifier_factory import get_notifier

TEST_PASSWORD = "testpassword123"


class RecordingNotifier(TicketNotifier):
    def __init__(self):
        self.sent: list[TicketConfirmation] = []
        self.fail = False

    async def send_confirmation(self, confirmation: TicketConfirmation) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append(confirmation)


@pytest_asyncio.fixture
async def sessionmaker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh schema in a per-test SQLite file."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'izuran-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield make_sessionmaker(engine)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """
    A session for direct service calls. Tests commit or roll back themselves;
    an open transaction holds the SQLite write lock.
    """
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(sessionmaker, notifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session, like production."""

    async def override_get_db():
        async with sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    # A dotted host so httpx's cookie jar keeps the refresh cookie.
    async with AsyncClient(transport=transport, base_url="http://izuran.test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(sessionmaker, email: str, username: str, role: str = "user") -> User:
    async with sessionmaker() as session:
        user = User(
            email=email,
            username=username,
            hashed_password=hash_password(TEST_PASSWORD),
            role=role,
            is_active=True,
        )
        session.add(user)
        await session.commit()
        return user


@pytest_asyncio.fixture
async def test_user(sessionmaker) -> User:
    return await _create_user(sessionmaker, "test@example.com", "testuser")


@pytest_asyncio.fixture
async def other_user(sessionmaker) -> User:
    return await _create_user(sessionmaker, "other@example.com", "otheruser")


@pytest_asyncio.fixture
async def admin_user(sessionmaker) -> User:
    return await _create_user(sessionmaker, "door@example.com", "doorstaff", role="admin")


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return _headers_for(test_user)


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return _headers_for(other_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


@pytest_asyncio.fixture
async def test_event(sessionmaker) -> Event:
    async with sessionmaker() as session:
        event = Event(
            name="Izuran Summer Festival",
            slug="izuran-summer-festival",
            description="Three stages, one night",
            location="Agadir",
            date=datetime.now(timezone.utc) + timedelta(days=30),
        )
        session.add(event)
        await session.commit()
        return event


@pytest_asyncio.fixture
async def past_event(sessionmaker) -> Event:
    async with sessionmaker() as session:
        event = Event(
            name="Last Year",
            slug="last-year",
            location="Agadir",
            date=datetime.now(timezone.utc) - timedelta(days=30),
        )
        session.add(event)
        await session.commit()
        return event


async def add_limit(
    sessionmaker,
    event_id: int,
    ticket_type: str = "general",
    max_tickets: int = 100,
    price: str = "25.00",
    is_active: bool = True,
    sold_tickets: int = 0,
) -> TicketLimit:
    async with sessionmaker() as session:
        limit = TicketLimit(
            event_id=event_id,
            ticket_type=ticket_type,
            max_tickets=max_tickets,
            sold_tickets=sold_tickets,
            price=Decimal(price),
            currency="USD",
            is_active=is_active,
        )
        session.add(limit)
        await session.commit()
        return limit


@pytest_asyncio.fixture
async def general_limit(sessionmaker, test_event) -> TicketLimit:
    return await add_limit(sessionmaker, test_event.id)


@pytest_asyncio.fixture
async def last_ticket_limit(sessionmaker, test_event) -> TicketLimit:
    """A type with exactly one ticket left."""
    return await add_limit(sessionmaker, test_event.id, ticket_type="vip", max_tickets=1, price="120.00")


async def fetch_limit(sessionmaker, limit_id: int) -> TicketLimit:
    async with sessionmaker() as session:
        limit = await session.get(TicketLimit, limit_id)
        await session.commit()
        return limit


def purchase_body(ticket_type: str = "general", quantity: int = 1) -> dict:
    return {
        "ticket_type": ticket_type,
        "quantity": quantity,
        "attendee_name": "Amina Test",
        "attendee_email": "amina@example.com",
        "attendee_phone": "+212600000000",
    }
