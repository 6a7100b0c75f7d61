"""Pytest configuration and fixtures for testing."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.clock import Clock
from app.core.database import Base
from app.models import Equipment, EquipmentStatus
from app.services.lock_service import LocalLockService
from app.services.order_service import OrderService
from app.services.order_state_machine import Actor


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def set_today(self, day: date) -> None:
        self.current = datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)


# Mock Redis client fixture
@pytest.fixture
def mock_redis() -> AsyncMock:
    """Create a mock Redis client."""
    redis = AsyncMock()

    # Mock common Redis operations
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.eval = AsyncMock(return_value=1)

    return redis


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at noon UTC on 2024-01-01."""
    return FrozenClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def lock_service() -> LocalLockService:
    return LocalLockService(retry_interval=0.001)


# SQLite file database so every session gets its own connection
@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def order_service(db, lock_service, clock) -> OrderService:
    return OrderService(db, lock_service, clock=clock, lock_timeout=1.0)


# Identities
@pytest.fixture
def provider_id() -> UUID:
    return uuid4()


@pytest.fixture
def renter_id() -> UUID:
    return uuid4()


@pytest.fixture
def provider(provider_id: UUID) -> Actor:
    return Actor(actor_id=provider_id)


@pytest.fixture
def renter(renter_id: UUID) -> Actor:
    return Actor(actor_id=renter_id)


@pytest.fixture
def admin() -> Actor:
    return Actor(actor_id=uuid4(), is_admin=True)


@pytest.fixture
def stranger() -> Actor:
    return Actor(actor_id=uuid4())


@pytest.fixture
def make_equipment(
    session_factory, provider_id: UUID
) -> Callable[..., Awaitable[Equipment]]:
    """Factory that inserts an equipment row owned by the provider."""

    async def _make(
        daily_price: str = "100.00",
        status: EquipmentStatus = EquipmentStatus.AVAILABLE,
        owner_id: UUID | None = None,
    ) -> Equipment:
        async with session_factory() as session:
            equipment = Equipment(
                equipment_id=uuid4(),
                owner_id=owner_id or provider_id,
                name="Test Tractor",
                daily_price=Decimal(daily_price),
                status=status,
            )
            session.add(equipment)
            await session.commit()
            return equipment

    return _make


@pytest.fixture
def fetch_equipment(session_factory) -> Callable[[UUID], Awaitable[Equipment]]:
    """Read an equipment row in a fresh session."""

    async def _fetch(equipment_id: UUID) -> Equipment:
        async with session_factory() as session:
            return await session.get(Equipment, equipment_id)

    return _fetch


@pytest.fixture
def set_equipment_status(session_factory) -> Callable[[UUID, EquipmentStatus], Awaitable[None]]:
    """Owner-side status change, written outside the order service."""

    async def _set(equipment_id: UUID, status: EquipmentStatus) -> None:
        async with session_factory() as session:
            equipment = await session.get(Equipment, equipment_id)
            equipment.status = status
            await session.commit()

    return _set


# Mock order fixture
@pytest.fixture
def mock_order(renter_id: UUID, provider_id: UUID) -> MagicMock:
    """Create a mock order object."""
    order = MagicMock()
    order.order_id = uuid4()
    order.equipment_id = uuid4()
    order.renter_id = renter_id
    order.provider_id = provider_id
    return order
