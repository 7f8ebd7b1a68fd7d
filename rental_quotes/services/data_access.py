"""Read interface the quotation engine prices against."""
from typing import List, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

from rental_quotes.core.metrics import track_db_operation
from rental_quotes.core.response_builders import build_category_pricing, build_pricing_config
from rental_quotes.models.fleet import Branch, Booking, Vehicle
from rental_quotes.models.pricing import CategoryPricing, PricingConfig
from rental_quotes.schemas.fleet import BranchSchema, BookingSchema, VehicleSchema
from rental_quotes.schemas.pricing import CategoryPricingSchema, PricingConfigSchema


class QuoteDataSource(Protocol):
    async def get_category_pricing(self) -> List[CategoryPricingSchema]: ...

    async def get_pricing_config(self) -> Optional[PricingConfigSchema]: ...

    async def get_vehicles(self) -> List[VehicleSchema]: ...

    async def get_bookings(self, vehicle_id: Optional[int] = None) -> List[BookingSchema]: ...

    async def get_branches(self) -> List[BranchSchema]: ...


class SqlQuoteDataSource:
    """QuoteDataSource over the relational store.

    Every call opens its own session so availability lookups can run
    concurrently; an AsyncSession must not be shared between tasks.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @track_db_operation("select", "category_pricing")
    async def get_category_pricing(self) -> List[CategoryPricingSchema]:
        async with self.session_factory() as db:
            res = await db.execute(select(CategoryPricing).order_by(CategoryPricing.category_name))
            return [build_category_pricing(row) for row in res.scalars().all()]

    @track_db_operation("select", "pricing_config")
    async def get_pricing_config(self) -> Optional[PricingConfigSchema]:
        async with self.session_factory() as db:
            res = await db.execute(select(PricingConfig).order_by(PricingConfig.id).limit(1))
            row = res.scalars().first()
            return build_pricing_config(row) if row else None

    @track_db_operation("select", "vehicles")
    async def get_vehicles(self) -> List[VehicleSchema]:
        async with self.session_factory() as db:
            res = await db.execute(select(Vehicle))
            return [VehicleSchema.model_validate(row) for row in res.scalars().all()]

    @track_db_operation("select", "bookings")
    async def get_bookings(self, vehicle_id: Optional[int] = None) -> List[BookingSchema]:
        q = select(Booking)
        if vehicle_id is not None:
            q = q.where(Booking.vehicle_id == vehicle_id)
        async with self.session_factory() as db:
            res = await db.execute(q)
            return [BookingSchema.model_validate(row) for row in res.scalars().all()]

    @track_db_operation("select", "branches")
    async def get_branches(self) -> List[BranchSchema]:
        async with self.session_factory() as db:
            res = await db.execute(select(Branch).order_by(Branch.branch_name))
            return [BranchSchema.model_validate(row) for row in res.scalars().all()]
