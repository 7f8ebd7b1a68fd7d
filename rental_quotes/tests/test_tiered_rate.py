"""
Tests for progressive tier-band pricing
"""

import pytest

from conftest import make_tiers
from rental_quotes.core.exceptions import PricingComputationError
from rental_quotes.schemas.pricing import PricingTier
from rental_quotes.services.tiered_rate import build_bands, price_days


@pytest.mark.pricing
class TestPriceDays:

    def test_days_within_first_tier(self):
        result = price_days(5, 3000.0, make_tiers((7, 0.10)))
        assert result.total_cost == pytest.approx(13500.0)
        assert len(result.breakdown) == 1
        line = result.breakdown[0]
        assert line.tier == 1
        assert line.days == 5
        assert line.rate == 3000.0
        assert line.discount == pytest.approx(0.10)

    def test_days_spill_into_next_tier(self):
        result = price_days(10, 3000.0, make_tiers((7, 0.10), (14, 0.20)))
        assert [line.days for line in result.breakdown] == [7, 3]
        assert result.total_cost == pytest.approx(7 * 2700 + 3 * 2400)

    def test_last_configured_tier_is_unbounded(self):
        result = price_days(20, 3000.0, make_tiers((7, 0.10), (14, 0.20)))
        assert [line.days for line in result.breakdown] == [7, 13]
        assert result.billed_days == 20
        assert result.total_cost == pytest.approx(7 * 2700 + 13 * 2400)

    def test_zero_discounts_bill_base_rate(self):
        result = price_days(10, 2000.0, make_tiers((7, 0.0)))
        assert result.total_cost == pytest.approx(20000.0)

    def test_no_configured_tiers_bills_base_rate(self):
        result = price_days(4, 1000.0, make_tiers())
        assert result.total_cost == pytest.approx(4000.0)
        assert result.breakdown[0].tier == 1
        assert result.breakdown[0].discount == 0.0

    def test_unused_tier_in_the_middle_is_skipped(self):
        tiers = make_tiers((5, 0.10), (0, 0.0), (10, 0.20))
        result = price_days(8, 1000.0, tiers)
        assert [line.tier for line in result.breakdown] == [1, 3]
        assert [line.days for line in result.breakdown] == [5, 3]
        assert result.total_cost == pytest.approx(5 * 900 + 3 * 800)

    def test_zero_days_costs_nothing(self):
        result = price_days(0, 3000.0, make_tiers((7, 0.10)))
        assert result.total_cost == 0
        assert result.breakdown == []

    def test_bill_never_exceeds_undiscounted_price(self):
        tiers = make_tiers((3, 0.05), (7, 0.10), (14, 0.15), (30, 0.25))
        for days in range(0, 40):
            result = price_days(days, 1500.0, tiers)
            assert result.total_cost <= days * 1500.0 + 1e-6
            assert result.billed_days == days


@pytest.mark.pricing
class TestHalfDay:

    def test_half_day_within_first_tier(self):
        result = price_days(5, 3000.0, make_tiers((7, 0.10)), apply_half_day=True)
        assert result.breakdown[0].days == 5.5
        assert result.total_cost == pytest.approx(5.5 * 2700)

    def test_half_day_on_its_own(self):
        result = price_days(0, 3000.0, make_tiers((7, 0.10)), apply_half_day=True)
        assert result.billed_days == 0.5
        assert result.total_cost == pytest.approx(1350.0)

    def test_half_day_goes_to_first_band(self):
        result = price_days(8, 3000.0, make_tiers((7, 0.10), (14, 0.20)), apply_half_day=True)
        assert [line.days for line in result.breakdown] == [7.5, 1]
        assert result.total_cost == pytest.approx(7.5 * 2700 + 2400)


@pytest.mark.pricing
class TestInvalidTierConfiguration:

    def test_negative_days(self):
        with pytest.raises(PricingComputationError):
            price_days(-1, 3000.0, make_tiers((7, 0.10)))

    def test_negative_rate(self):
        with pytest.raises(PricingComputationError):
            price_days(3, -5.0, make_tiers((7, 0.10)))

    def test_wrong_tier_count(self):
        with pytest.raises(PricingComputationError, match="Expected 9 tiers"):
            price_days(3, 3000.0, make_tiers((7, 0.10))[:5])

    def test_thresholds_must_increase(self):
        with pytest.raises(PricingComputationError, match="must exceed"):
            price_days(3, 3000.0, make_tiers((7, 0.10), (5, 0.20)))

    def test_discount_out_of_range(self):
        tiers = make_tiers()
        tiers[0] = PricingTier.model_construct(days=7, discount=1.5)
        with pytest.raises(PricingComputationError, match="outside 0..1"):
            price_days(3, 3000.0, tiers)


class TestBuildBands:

    def test_capacities_follow_thresholds(self):
        bands = build_bands(make_tiers((7, 0.10), (14, 0.20), (30, 0.30)))
        assert bands == [(1, 7, 0.10), (2, 7, 0.20), (3, None, 0.30)]

    def test_empty_table(self):
        assert build_bands(make_tiers()) == [(1, None, 0.0)]
