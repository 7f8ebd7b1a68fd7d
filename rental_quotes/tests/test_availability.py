"""
Tests for branch-level vehicle availability
"""

import pytest
from datetime import datetime, timezone

from conftest import InMemoryDataSource
from rental_quotes.core.enums import BookingStatus
from rental_quotes.schemas.fleet import BookingSchema, VehicleSchema
from rental_quotes.services.availability import (
    UNASSIGNED_BRANCH_ID,
    UNASSIGNED_BRANCH_NAME,
    AvailabilityResolver,
    overlaps,
)

BOOKED_FROM = datetime(2025, 5, 10, 10, 0)
BOOKED_TO = datetime(2025, 5, 14, 10, 0)


def _booking(start, end, status=BookingStatus.ACTIVE, vehicle_id=1):
    return BookingSchema(id=99, vehicle_id=vehicle_id, status=status,
                         start_datetime=start, end_datetime=end)


class TestOverlaps:

    def test_inside_window(self):
        booking = _booking(BOOKED_FROM, BOOKED_TO)
        assert overlaps(datetime(2025, 5, 11), datetime(2025, 5, 12), booking)

    def test_touching_end_counts_as_overlap(self):
        booking = _booking(BOOKED_FROM, BOOKED_TO)
        assert overlaps(BOOKED_TO, datetime(2025, 5, 20), booking)

    def test_touching_start_counts_as_overlap(self):
        booking = _booking(BOOKED_FROM, BOOKED_TO)
        assert overlaps(datetime(2025, 5, 1), BOOKED_FROM, booking)

    def test_disjoint(self):
        booking = _booking(BOOKED_FROM, BOOKED_TO)
        assert not overlaps(datetime(2025, 6, 1), datetime(2025, 6, 3), booking)

    def test_naive_and_aware_compare_as_utc(self):
        booking = _booking(BOOKED_FROM, BOOKED_TO)
        start = datetime(2025, 5, 14, 10, 0, tzinfo=timezone.utc)
        assert overlaps(start, datetime(2025, 5, 16, tzinfo=timezone.utc), booking)


@pytest.mark.availability
class TestAvailabilityResolver:

    @pytest.mark.asyncio
    async def test_groups_free_vehicles_by_branch(self, fleet):
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(1, datetime(2025, 5, 12), datetime(2025, 5, 13), "SUV")

        assert result.available is True
        assert result.error is None
        by_branch = {b.branch_name: b for b in result.branch_availability}
        assert set(by_branch) == {"Branch A", "Branch B"}
        assert by_branch["Branch A"].vehicle_ids == [2]
        assert by_branch["Branch A"].available_count == 1
        assert by_branch["Branch A"].branch_id == "1"
        assert by_branch["Branch B"].vehicle_ids == [3]

    @pytest.mark.asyncio
    async def test_cancelled_and_completed_bookings_do_not_block(self, fleet):
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(1, datetime(2025, 5, 12), datetime(2025, 5, 13))
        free = [vid for b in result.branch_availability for vid in b.vehicle_ids]
        assert 1 not in free
        assert 2 in free
        assert 3 in free

    @pytest.mark.asyncio
    async def test_unpaid_advance_blocks(self, fleet):
        fleet.bookings.append(_booking(BOOKED_FROM, BOOKED_TO, BookingStatus.ADVANCE_PAYMENT_NOT_PAID, vehicle_id=2))
        fleet.bookings.append(_booking(BOOKED_FROM, BOOKED_TO, BookingStatus.ACTIVE, vehicle_id=3))
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(1, datetime(2025, 5, 12), datetime(2025, 5, 13))
        assert result.available is False
        assert result.branch_availability == []
        assert result.error is None

    @pytest.mark.asyncio
    async def test_personal_and_grounded_vehicles_are_excluded(self, fleet):
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(1, datetime(2025, 6, 1), datetime(2025, 6, 3))
        free = sorted(vid for b in result.branch_availability for vid in b.vehicle_ids)
        assert free == [1, 2, 3]
        assert sorted(fleet.booking_calls) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_counts_add_up(self, fleet):
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(1, datetime(2025, 6, 1), datetime(2025, 6, 3))
        assert sum(b.available_count for b in result.branch_availability) == 3
        for branch in result.branch_availability:
            assert branch.available_count == len(branch.vehicle_ids)

    @pytest.mark.asyncio
    async def test_vehicle_without_branch_is_unassigned(self, fleet):
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(2, datetime(2025, 5, 12), datetime(2025, 5, 13), "Saloon")
        assert result.available is True
        assert len(result.branch_availability) == 1
        bucket = result.branch_availability[0]
        assert bucket.branch_id == UNASSIGNED_BRANCH_ID
        assert bucket.branch_name == UNASSIGNED_BRANCH_NAME
        assert bucket.vehicle_ids == [6]

    @pytest.mark.asyncio
    async def test_category_without_vehicles(self, fleet):
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(42, datetime(2025, 5, 12), datetime(2025, 5, 13))
        assert result.available is False
        assert result.branch_availability == []
        assert result.error is None


@pytest.mark.availability
class TestAvailabilityFailsClosed:

    @pytest.mark.asyncio
    async def test_vehicle_lookup_failure(self, fleet):
        fleet.failures.add("get_vehicles")
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(1, datetime(2025, 5, 12), datetime(2025, 5, 13), "SUV")
        assert result.available is False
        assert result.branch_availability == []
        assert "get_vehicles unavailable" in result.error

    @pytest.mark.asyncio
    async def test_booking_lookup_failure(self, fleet):
        fleet.failures.add("get_bookings")
        resolver = AvailabilityResolver(fleet)
        result = await resolver.resolve(1, datetime(2025, 5, 12), datetime(2025, 5, 13))
        assert result.available is False
        assert result.error is not None

    @pytest.mark.asyncio
    async def test_timeout(self):
        source = InMemoryDataSource(
            vehicles=[VehicleSchema(id=1, category_id=1, branch_id=None)],
            delay=1.0,
        )
        resolver = AvailabilityResolver(source, timeout=0.05)
        result = await resolver.resolve(1, datetime(2025, 5, 12), datetime(2025, 5, 13))
        assert result.available is False
        assert "timed out" in result.error
