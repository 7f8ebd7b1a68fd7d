import asyncio
import os
from datetime import datetime

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_rental_quotes.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rental_quotes.api.quotes import get_data_source
from rental_quotes.core import redis as redis_module
from rental_quotes.core.enums import BookingStatus, UserRole, VehicleStatus
from rental_quotes.core.security import create_access_token
from rental_quotes.db.session import get_db
from rental_quotes.main import app
from rental_quotes.models import (
    Base,
    Booking,
    Branch,
    CategoryPricing,
    PricingConfig,
    User,
    Vehicle,
    VehicleCategory,
)
from rental_quotes.schemas.fleet import BookingSchema, BranchSchema, VehicleSchema
from rental_quotes.schemas.pricing import CategoryPricingSchema, PricingConfigSchema, PricingTier
from rental_quotes.services.data_access import SqlQuoteDataSource


def make_tiers(*pairs):
    """Nine tiers from leading (days, discount) pairs; the rest unused."""
    tiers = [PricingTier(days=days, discount=discount) for days, discount in pairs]
    tiers += [PricingTier() for _ in range(9 - len(tiers))]
    return tiers


class InMemoryDataSource:
    """QuoteDataSource backed by plain lists.

    ``failures`` names methods that raise; ``delay`` stalls get_bookings.
    """

    def __init__(self, pricing=None, config=None, vehicles=None, bookings=None,
                 branches=None, failures=(), delay=0.0):
        self.pricing = pricing or []
        self.config = config
        self.vehicles = vehicles or []
        self.bookings = bookings or []
        self.branches = branches or []
        self.failures = set(failures)
        self.delay = delay
        self.booking_calls = []

    def _maybe_fail(self, name):
        if name in self.failures:
            raise ConnectionError(f"{name} unavailable")

    async def get_category_pricing(self):
        self._maybe_fail("get_category_pricing")
        return list(self.pricing)

    async def get_pricing_config(self):
        self._maybe_fail("get_pricing_config")
        return self.config

    async def get_vehicles(self):
        self._maybe_fail("get_vehicles")
        return list(self.vehicles)

    async def get_bookings(self, vehicle_id=None):
        self.booking_calls.append(vehicle_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        self._maybe_fail("get_bookings")
        return [b for b in self.bookings if vehicle_id is None or b.vehicle_id == vehicle_id]

    async def get_branches(self):
        self._maybe_fail("get_branches")
        return list(self.branches)


class FakeRedis:
    """Minimal async stand-in for the redis client used by rate limiting and idempotency."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value.encode() if isinstance(value, str) else value

    async def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1).encode()
        return int(self.store[key])

    async def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
def pricing_config():
    return PricingConfigSchema(chauffeur_fee_per_day=4000.0, vat_percentage=0.16)


@pytest.fixture
def suv_pricing():
    return CategoryPricingSchema(
        id=1,
        category_id=1,
        category_name="SUV",
        off_peak_rate=3000.0,
        peak_rate=4000.0,
        self_drive_deposit=20000.0,
        tiers=make_tiers((7, 0.10), (14, 0.20)),
    )


@pytest.fixture
def saloon_pricing():
    return CategoryPricingSchema(
        id=2,
        category_id=2,
        category_name="Saloon",
        off_peak_rate=2000.0,
        peak_rate=2500.0,
        self_drive_deposit=10000.0,
        tiers=make_tiers((7, 0.0)),
    )


@pytest.fixture
def fleet(suv_pricing, saloon_pricing, pricing_config):
    """Two branches; SUVs 1 and 2 at Branch A (1 booked), SUV 3 at Branch B, a personal SUV."""
    window_start = datetime(2025, 5, 10, 10, 0)
    window_end = datetime(2025, 5, 14, 10, 0)
    return InMemoryDataSource(
        pricing=[suv_pricing, saloon_pricing],
        config=pricing_config,
        branches=[
            BranchSchema(id=1, branch_name="Branch A"),
            BranchSchema(id=2, branch_name="Branch B"),
        ],
        vehicles=[
            VehicleSchema(id=1, category_id=1, branch_id=1),
            VehicleSchema(id=2, category_id=1, branch_id=1),
            VehicleSchema(id=3, category_id=1, branch_id=2),
            VehicleSchema(id=4, category_id=1, branch_id=2, is_personal=True),
            VehicleSchema(id=5, category_id=1, branch_id=2, status=VehicleStatus.GROUNDED),
            VehicleSchema(id=6, category_id=2, branch_id=None),
        ],
        bookings=[
            BookingSchema(id=1, vehicle_id=1, status=BookingStatus.ACTIVE,
                          start_datetime=window_start, end_datetime=window_end),
            BookingSchema(id=2, vehicle_id=2, status=BookingStatus.CANCELLED,
                          start_datetime=window_start, end_datetime=window_end),
            BookingSchema(id=3, vehicle_id=3, status=BookingStatus.COMPLETED,
                          start_datetime=window_start, end_datetime=window_end),
        ],
    )


@pytest.fixture
def fake_redis():
    fake = FakeRedis()
    previous = redis_module.redis
    redis_module.redis = fake
    yield fake
    redis_module.redis = previous


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded(session_factory):
    """Users, branches, categories, pricing and a booked SUV in the relational store."""
    async with session_factory() as session:
        admin = User(username="admin", password_hash="x", role=UserRole.ADMIN)
        agent = User(username="agent", password_hash="x", role=UserRole.AGENT)
        other_agent = User(username="agent2", password_hash="x", role=UserRole.AGENT)
        branch_a = Branch(branch_name="Branch A", location="Nairobi")
        branch_b = Branch(branch_name="Branch B", location="Mombasa")
        suv = VehicleCategory(category_name="SUV")
        saloon = VehicleCategory(category_name="Saloon")
        session.add_all([admin, agent, other_agent, branch_a, branch_b, suv, saloon])
        await session.flush()

        suv_pricing = CategoryPricing(
            category_id=suv.id, category_name="SUV",
            off_peak_rate=3000.0, peak_rate=4000.0, self_drive_deposit=20000.0,
        )
        suv_pricing.set_tiers([(7, 0.10), (14, 0.20)] + [(0, 0.0)] * 7)
        saloon_pricing = CategoryPricing(
            category_id=saloon.id, category_name="Saloon",
            off_peak_rate=2000.0, peak_rate=2500.0, self_drive_deposit=10000.0,
        )
        saloon_pricing.set_tiers([(7, 0.0)] + [(0, 0.0)] * 8)
        session.add_all([
            suv_pricing,
            saloon_pricing,
            PricingConfig(chauffeur_fee_per_day=4000.0, vat_percentage=0.16),
        ])

        booked = Vehicle(reg_number="KAA 001A", category_id=suv.id, branch_id=branch_a.id)
        free_a = Vehicle(reg_number="KAA 002A", category_id=suv.id, branch_id=branch_a.id)
        free_b = Vehicle(reg_number="KAA 003A", category_id=suv.id, branch_id=branch_b.id)
        session.add_all([booked, free_a, free_b])
        await session.flush()

        session.add(Booking(
            vehicle_id=booked.id,
            client_name="Existing Client",
            status=BookingStatus.ACTIVE,
            start_datetime=datetime(2025, 5, 10, 10, 0),
            end_datetime=datetime(2025, 5, 14, 10, 0),
        ))
        await session.commit()

        return {
            "admin_id": admin.id,
            "agent_id": agent.id,
            "other_agent_id": other_agent.id,
            "suv_id": suv.id,
            "saloon_id": saloon.id,
            "suv_pricing_id": suv_pricing.id,
            "branch_a_id": branch_a.id,
            "branch_b_id": branch_b.id,
            "vehicle_ids": [booked.id, free_a.id, free_b.id],
        }


@pytest.fixture
async def test_client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_data_source] = lambda: SqlQuoteDataSource(session_factory)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(seeded):
    token = create_access_token(str(seeded["admin_id"]), UserRole.ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def agent_headers(seeded):
    token = create_access_token(str(seeded["agent_id"]), UserRole.AGENT)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_agent_headers(seeded):
    token = create_access_token(str(seeded["other_agent_id"]), UserRole.AGENT)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def valid_quote_inputs():
    return {
        "start_date": "2025-05-10T10:00:00",
        "end_date": "2025-05-14T10:00:00",
        "has_half_day": False,
        "has_chauffeur": False,
        "rental_type": "self_drive",
        "pickup_location": "Branch A",
        "dropoff_location": "Branch A",
        "different_location_charge": 0,
        "outside_hours_charge": 0,
        "extra_fees": [],
    }


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "availability: marks tests related to vehicle availability"
    )
    config.addinivalue_line(
        "markers", "rate_limit: marks tests related to rate limiting"
    )
    config.addinivalue_line(
        "markers", "audit: marks tests related to audit logging"
    )
    config.addinivalue_line(
        "markers", "idempotency: marks tests related to idempotency"
    )
