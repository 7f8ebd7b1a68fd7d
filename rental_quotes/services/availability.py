import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from rental_quotes.core.config import settings
from rental_quotes.core.enums import BLOCKING_BOOKING_STATUSES, VehicleStatus
from rental_quotes.core.exceptions import AvailabilityLookupError
from rental_quotes.core.metrics import availability_lookup_failures
from rental_quotes.schemas.fleet import BookingSchema, VehicleSchema
from rental_quotes.schemas.quote import AvailabilityResult, BranchAvailability
from rental_quotes.services.data_access import QuoteDataSource

logger = logging.getLogger(__name__)

UNASSIGNED_BRANCH_ID = "unassigned"
UNASSIGNED_BRANCH_NAME = "No Branch Assigned"


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def overlaps(start: datetime, end: datetime, booking: BookingSchema) -> bool:
    """Inclusive overlap between the requested window and a booking."""
    return (
        as_utc(start) <= as_utc(booking.end_datetime)
        and as_utc(end) >= as_utc(booking.start_datetime)
    )


def is_candidate(vehicle: VehicleSchema, category_id: int) -> bool:
    return (
        vehicle.category_id == category_id
        and vehicle.status == VehicleStatus.AVAILABLE
        and not vehicle.is_personal
    )


class AvailabilityResolver:
    """Works out which vehicles of a category are free, grouped by branch.

    Lookups fail closed: a data-access error or a lookup slower than
    ``timeout`` seconds reports the category as unavailable with the error
    attached instead of raising.
    """

    def __init__(self, data_source: QuoteDataSource, timeout: Optional[float] = None):
        self.data_source = data_source
        self.timeout = settings.AVAILABILITY_TIMEOUT if timeout is None else timeout

    async def resolve(self, category_id: int, start: datetime, end: datetime,
                      category_name: Optional[str] = None) -> AvailabilityResult:
        label = category_name or str(category_id)
        try:
            return await asyncio.wait_for(self._lookup(category_id, start, end), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = AvailabilityLookupError(
                category_id, f"Availability lookup timed out after {self.timeout}s"
            )
            return self._fail_closed(label, "timeout", error)
        except AvailabilityLookupError as e:
            return self._fail_closed(label, "lookup_error", e)
        except Exception as e:
            error = AvailabilityLookupError(category_id, f"Availability lookup failed: {e}")
            return self._fail_closed(label, "lookup_error", error)

    def _fail_closed(self, label: str, reason: str, error: AvailabilityLookupError) -> AvailabilityResult:
        logger.warning(f"Treating category {label} as unavailable: {error}")
        availability_lookup_failures.labels(category=label, reason=reason).inc()
        return AvailabilityResult(available=False, branch_availability=[], error=str(error))

    async def _lookup(self, category_id: int, start: datetime, end: datetime) -> AvailabilityResult:
        vehicles = await self.data_source.get_vehicles()
        candidates = [v for v in vehicles if is_candidate(v, category_id)]
        if not candidates:
            return AvailabilityResult(available=False, branch_availability=[])

        bookings_per_vehicle = await asyncio.gather(
            *(self.data_source.get_bookings(vehicle_id=v.id) for v in candidates)
        )

        free: List[VehicleSchema] = []
        for vehicle, bookings in zip(candidates, bookings_per_vehicle):
            blocking = [
                b for b in bookings
                if b.vehicle_id == vehicle.id and b.status in BLOCKING_BOOKING_STATUSES
            ]
            if not any(overlaps(start, end, b) for b in blocking):
                free.append(vehicle)

        if not free:
            return AvailabilityResult(available=False, branch_availability=[])

        branches = {b.id: b.branch_name for b in await self.data_source.get_branches()}

        grouped: Dict[str, BranchAvailability] = {}
        for vehicle in free:
            if vehicle.branch_id is None:
                branch_id = UNASSIGNED_BRANCH_ID
                branch_name = UNASSIGNED_BRANCH_NAME
            else:
                branch_id = str(vehicle.branch_id)
                branch_name = branches.get(vehicle.branch_id, UNASSIGNED_BRANCH_NAME)

            entry = grouped.get(branch_id)
            if entry is None:
                entry = BranchAvailability(
                    branch_id=branch_id,
                    branch_name=branch_name,
                    available_count=0,
                    vehicle_ids=[],
                )
                grouped[branch_id] = entry
            entry.vehicle_ids.append(vehicle.id)
            entry.available_count = len(entry.vehicle_ids)

        branch_availability = list(grouped.values())
        total = sum(b.available_count for b in branch_availability)
        return AvailabilityResult(available=total > 0, branch_availability=branch_availability)
