"""
Centralized Test Configuration.
"""

import pytest
from datetime import timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from dealership.app.main import app
from dealership.app.db.session import get_db, Base
from dealership.app.core.clock import utcnow
from dealership.app.core.jwt import create_access_token
from dealership.app.core.redis_client import get_redis
import dealership.app.core.redis_client as redis_client_module
from dealership.app.models.enums import UserRole
from dealership.app.models.inventory_enums import VehicleStatus
from dealership.app.models.user import User
from dealership.app.models.vehicle import Vehicle

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def setex(self, key, ttl, value):
        if self._closed:
            raise ConnectionError("Redis is down")
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            raise ConnectionError("Redis is down")
        return 1 if key in self.store else 0

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_redis(monkeypatch):
    redis = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", redis)
    return redis


@pytest.fixture
def apply_overrides(session_factory, mock_redis):
    """Route the app's sessions and Redis client to the test doubles."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client(apply_overrides):
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Data factories
#
# Factories commit through their own session and return detached rows, so a
# rollback in the session under test never expires them.

@pytest.fixture
def make_user(session_factory):
    counter = {"n": 0}

    async def _make_user(role: UserRole, is_active: bool = True, name: str = None) -> User:
        counter["n"] += 1
        user = User(
            email=f"{role.value}{counter['n']}@dealership.test",
            name=name or f"{role.value.title()} {counter['n']}",
            role=role,
            is_active=is_active
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_vehicle(session_factory):
    counter = {"n": 0}

    async def _make_vehicle(status: VehicleStatus = VehicleStatus.AVAILABLE, **fields) -> Vehicle:
        counter["n"] += 1
        data = {
            "make": "Toyota",
            "model": "Corolla",
            "year": 2022,
            "vin": f"JTDBR32E72{counter['n']:07d}",
            "price": 21500.0,
        }
        data.update(fields)
        vehicle = Vehicle(status=status, **data)
        async with session_factory() as session:
            session.add(vehicle)
            await session.commit()
            await session.refresh(vehicle)
        return vehicle

    return _make_vehicle


@pytest.fixture
async def admin(make_user):
    return await make_user(UserRole.ADMIN)


@pytest.fixture
async def sales_person(make_user):
    return await make_user(UserRole.SALES)


@pytest.fixture
async def cashier(make_user):
    return await make_user(UserRole.CASHIER)


@pytest.fixture
async def customer(make_user):
    return await make_user(UserRole.CUSTOMER)


def actor_for(user: User) -> dict:
    """Token-shaped payload for a user, as get_current_user returns it."""
    return {"sub": user.email, "user_id": user.id, "role": user.role.value}


@pytest.fixture
def actor():
    return actor_for


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token(actor_for(user))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def in_hours():
    def _in_hours(hours: float):
        return utcnow() + timedelta(hours=hours)

    return _in_hours
