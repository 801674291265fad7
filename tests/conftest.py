"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings validation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("COMMISSION_POLICY", "daily_aggregate")
os.environ.setdefault("REDIS_HOST", "localhost")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Job modules declare actors at import time; keep them off Redis
import dramatiq
from dramatiq.brokers.stub import StubBroker

stub_broker = StubBroker()
dramatiq.set_broker(stub_broker)

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.models import Base, User
from app.services.referral.chain_manager import ReferralChainManager


class FrozenClock:
    """Injectable clock returning a fixed UTC datetime."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock frozen at 2024-05-10 12:00 UTC."""
    return FrozenClock(datetime(2024, 5, 10, 12, 0, tzinfo=UTC))


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for lock tests."""
    client = MagicMock()
    redis_lock = MagicMock()
    redis_lock.acquire = AsyncMock(return_value=True)
    redis_lock.release = AsyncMock()
    client.lock = MagicMock(return_value=redis_lock)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
async def db_engine():
    """In-memory SQLite engine with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_maker):
    """Database session for one test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(session):
    """Factory creating committed users."""
    counter = {"n": 0}

    async def _make_user(
        balance: Decimal | str = "0",
        email: str | None = None,
        referral_code: str | None = None,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"user{n}@example.com",
            referral_code=referral_code or f"CODE{n:02d}",
            total_balance=Decimal(str(balance)),
            earned_balance=Decimal(str(balance)),
        )
        session.add(user)
        await session.commit()
        return user

    return _make_user


@pytest.fixture
def make_chain(session, make_user):
    """
    Factory creating a referral chain U1 <- U2 <- ... <- Un.

    Each user signs up with the previous user's code.
    """
    async def _make_chain(length: int) -> list[User]:
        graph = ReferralChainManager(session)
        users: list[User] = []
        for _ in range(length):
            user = await make_user()
            if users:
                await graph.record_signup(user.id, users[-1].referral_code)
                await session.commit()
            users.append(user)
        return users

    return _make_chain
