"""Progressive tier-band pricing of rental days.

Each tier carries a cumulative day threshold and a discount off the base daily
rate. Tiers are consumed in order as bands: tier ``i`` covers the days between
the previous configured threshold and its own. A zero threshold marks an unused
tier. The last configured tier has no upper bound, so long rentals keep being
billed at its rate once its threshold is passed.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from rental_quotes.core.exceptions import PricingComputationError
from rental_quotes.schemas.pricing import PricingTier, TIER_COUNT
from rental_quotes.schemas.quote import TierLine

HALF_DAY = 0.5


@dataclass
class TieredPrice:
    total_cost: float = 0.0
    breakdown: List[TierLine] = field(default_factory=list)

    @property
    def billed_days(self) -> float:
        return sum(line.days for line in self.breakdown)


def _validate(days: float, base_rate: float, tiers: Sequence[PricingTier]) -> None:
    if days < 0:
        raise PricingComputationError(f"Cannot price a negative number of days ({days})")
    if base_rate is None or base_rate < 0:
        raise PricingComputationError(f"Invalid base rate {base_rate!r}")
    if len(tiers) != TIER_COUNT:
        raise PricingComputationError(f"Expected {TIER_COUNT} tiers, got {len(tiers)}")

    previous = 0
    for index, tier in enumerate(tiers, start=1):
        if not 0.0 <= tier.discount <= 1.0:
            raise PricingComputationError(
                f"Tier {index} discount {tier.discount} is outside 0..1"
            )
        if tier.days < 0:
            raise PricingComputationError(f"Tier {index} threshold is negative")
        if tier.days == 0:
            continue
        if tier.days <= previous:
            raise PricingComputationError(
                f"Tier {index} threshold ({tier.days}) must exceed the previous threshold ({previous})"
            )
        previous = tier.days


def build_bands(tiers: Sequence[PricingTier]) -> List[Tuple[int, Optional[int], float]]:
    """Return ``(tier_number, capacity, discount)`` for every configured tier.

    Capacity is None for the last configured tier. With no configured tier at
    all the whole rental is one undiscounted band.
    """
    configured = [(number, tier) for number, tier in enumerate(tiers, start=1) if tier.days > 0]
    if not configured:
        return [(1, None, 0.0)]

    bands = []
    previous = 0
    for position, (number, tier) in enumerate(configured):
        is_last = position == len(configured) - 1
        capacity = None if is_last else tier.days - previous
        bands.append((number, capacity, tier.discount))
        previous = tier.days
    return bands


def price_days(
    days: float,
    base_rate: float,
    tiers: Sequence[PricingTier],
    apply_half_day: bool = False,
) -> TieredPrice:
    """Price ``days`` rental days against the tier table.

    ``apply_half_day`` bills an extra half day in the first band that bills
    anything, at that band's discounted rate.
    """
    _validate(days, base_rate, tiers)

    result = TieredPrice()
    remaining = days
    half_day_pending = apply_half_day

    for number, capacity, discount in build_bands(tiers):
        if remaining <= 0 and not half_day_pending:
            break

        billed = remaining if capacity is None else min(capacity, remaining)
        remaining -= billed
        if half_day_pending:
            billed += HALF_DAY
            half_day_pending = False
        if billed <= 0:
            continue

        amount = billed * base_rate * (1 - discount)
        result.breakdown.append(TierLine(
            tier=number,
            days=billed,
            rate=base_rate,
            discount=discount,
            amount=amount,
        ))
        result.total_cost += amount

    return result
