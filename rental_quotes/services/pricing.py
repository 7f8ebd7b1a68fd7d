"""Quote composition: season split, tiered rental fee, fees, VAT and availability per category."""
import asyncio
import logging
import math
import time
from datetime import datetime, time as dt_time
from typing import List, Optional, Sequence

from rental_quotes.core.exceptions import InputValidationError, PricingComputationError
from rental_quotes.core.metrics import quote_calculations, quote_calculation_duration
from rental_quotes.schemas.pricing import CategoryPricingSchema, PricingConfigSchema
from rental_quotes.schemas.quote import (
    AvailabilityResult,
    CategoryQuoteResult,
    QuoteBreakdown,
    QuoteCalculation,
    QuoteInputs,
)
from rental_quotes.services.availability import AvailabilityResolver, as_utc
from rental_quotes.services.data_access import QuoteDataSource
from rental_quotes.services.season import SeasonSplit, rental_days, split_days_by_season
from rental_quotes.services.tiered_rate import HALF_DAY, price_days

logger = logging.getLogger(__name__)

ROUNDING_UNIT = 10
ADVANCE_PAYMENT_SHARE = 0.25
OPENING_TIME = dt_time(9, 0)
CLOSING_TIME = dt_time(18, 0)


def round_up_to_ten(amount: float) -> int:
    # drop float noise only; any sub-cent excess still rounds up
    return int(math.ceil(round(amount, 6) / ROUNDING_UNIT) * ROUNDING_UNIT)


def is_outside_hours(moment: Optional[datetime]) -> bool:
    if moment is None:
        return False
    clock = moment.time()
    return clock < OPENING_TIME or clock > CLOSING_TIME


def validate_inputs(inputs: QuoteInputs) -> None:
    if inputs.start_date is None or inputs.end_date is None:
        raise InputValidationError("Please select start and end dates")
    if as_utc(inputs.end_date) < as_utc(inputs.start_date):
        raise InputValidationError("End date must be after start date")
    if not (inputs.pickup_location or "").strip() or not (inputs.dropoff_location or "").strip():
        raise InputValidationError("Please select both pickup and drop-off locations")


class QuoteComposer:
    """Prices every category side by side and attaches live availability.

    Pricing fails loud: any category that cannot be priced aborts the whole
    composition. Availability fails closed inside the resolver.
    """

    def __init__(self, resolver: AvailabilityResolver):
        self.resolver = resolver

    async def compose(
        self,
        category_pricing: Sequence[CategoryPricingSchema],
        inputs: QuoteInputs,
        config: PricingConfigSchema,
    ) -> List[CategoryQuoteResult]:
        validate_inputs(inputs)
        split = split_days_by_season(inputs.start_date, inputs.end_date)
        days = rental_days(inputs.start_date, inputs.end_date)

        priced = [self.price_category(p, inputs, config, split, days) for p in category_pricing]

        availability = await asyncio.gather(*(
            self.resolver.resolve(p.category_id, inputs.start_date, inputs.end_date, p.category_name)
            for p in category_pricing
        ))
        for result, found in zip(priced, availability):
            self._attach(result, found)
        return priced

    def price_category(
        self,
        pricing: CategoryPricingSchema,
        inputs: QuoteInputs,
        config: PricingConfigSchema,
        split: SeasonSplit,
        days: int,
    ) -> CategoryQuoteResult:
        try:
            return self._price(pricing, inputs, config, split, days)
        except PricingComputationError as e:
            if e.category_name is None:
                raise PricingComputationError(str(e), pricing.category_name) from e
            raise
        except Exception as e:
            logger.error(f"Pricing failed for {pricing.category_name}: {e}", exc_info=True)
            raise PricingComputationError(f"Unable to price category: {e}", pricing.category_name) from e

    def _price(self, pricing, inputs, config, split, days) -> CategoryQuoteResult:
        off_peak_tiers = []
        peak_tiers = []
        rental_fee = 0.0

        if split.off_peak_days > 0:
            off_peak = price_days(
                split.off_peak_days,
                pricing.off_peak_rate,
                pricing.tiers,
                apply_half_day=inputs.has_half_day,
            )
            rental_fee += off_peak.total_cost
            off_peak_tiers = off_peak.breakdown

        if split.peak_days > 0:
            peak = price_days(
                split.peak_days,
                pricing.peak_rate,
                pricing.tiers,
                apply_half_day=inputs.has_half_day and split.off_peak_days == 0,
            )
            rental_fee += peak.total_cost
            peak_tiers = peak.breakdown

        chauffeur_fee = 0.0
        if inputs.is_chauffeured:
            rate = inputs.chauffeur_rate if inputs.chauffeur_rate is not None else config.chauffeur_fee_per_day
            chauffeur_fee = (days + (HALF_DAY if inputs.has_half_day else 0)) * rate

        outside_hours_charge = 0.0
        if is_outside_hours(inputs.start_date) or is_outside_hours(inputs.end_date):
            outside_hours_charge = inputs.outside_hours_charge

        extra_fees = [fee.model_copy() for fee in inputs.extra_fees]
        subtotal = (
            rental_fee
            + chauffeur_fee
            + outside_hours_charge
            + inputs.different_location_charge
            + sum(fee.amount for fee in extra_fees)
        )
        vat = subtotal * config.vat_percentage
        grand_total = round_up_to_ten(subtotal + vat)

        security_deposit = 0.0 if inputs.is_chauffeured else pricing.self_drive_deposit
        advance_payment = round_up_to_ten(grand_total * ADVANCE_PAYMENT_SHARE)

        return CategoryQuoteResult(
            category_id=pricing.category_id,
            category_name=pricing.category_name,
            rental_fee=rental_fee,
            chauffeur_fee=chauffeur_fee,
            outside_hours_charge=outside_hours_charge,
            different_location_charge=inputs.different_location_charge,
            extra_fees=extra_fees,
            subtotal=subtotal,
            vat=vat,
            grand_total=grand_total,
            security_deposit=security_deposit,
            advance_payment=advance_payment,
            breakdown=QuoteBreakdown(
                peak_days=split.peak_days,
                off_peak_days=split.off_peak_days,
                off_peak_tiers=off_peak_tiers,
                peak_tiers=peak_tiers,
            ),
        )

    @staticmethod
    def _attach(result: CategoryQuoteResult, availability: AvailabilityResult) -> None:
        result.available = availability.available
        result.branch_availability = availability.branch_availability
        result.availability_error = availability.error


async def calculate_quote(
    data_source: QuoteDataSource,
    inputs: QuoteInputs,
    resolver: Optional[AvailabilityResolver] = None,
) -> QuoteCalculation:
    """Validate, load pricing through ``data_source`` and compose one result per category."""
    validate_inputs(inputs)
    started = time.time()

    try:
        category_pricing = await data_source.get_category_pricing()
        config = await data_source.get_pricing_config()
    except Exception as e:
        quote_calculations.labels(status="error").inc()
        logger.error(f"Could not load pricing configuration: {e}", exc_info=True)
        raise PricingComputationError(f"Could not load pricing configuration: {e}") from e

    if config is None:
        quote_calculations.labels(status="error").inc()
        raise PricingComputationError("Pricing configuration has not been set up")

    if inputs.category_ids is not None:
        wanted = set(inputs.category_ids)
        unknown = wanted - {p.category_id for p in category_pricing}
        if unknown:
            quote_calculations.labels(status="error").inc()
            raise PricingComputationError(
                f"No pricing configured for categories {sorted(unknown)}"
            )
        category_pricing = [p for p in category_pricing if p.category_id in wanted]

    composer = QuoteComposer(resolver or AvailabilityResolver(data_source))
    try:
        results = await composer.compose(category_pricing, inputs, config)
    except PricingComputationError:
        quote_calculations.labels(status="error").inc()
        raise

    quote_calculations.labels(status="success").inc()
    quote_calculation_duration.observe(time.time() - started)

    split = split_days_by_season(inputs.start_date, inputs.end_date)
    logger.info(
        f"Quoted {len(results)} categories for {split.total_days} days "
        f"({split.peak_days} peak, {split.off_peak_days} off-peak)"
    )
    return QuoteCalculation(
        rental_days=rental_days(inputs.start_date, inputs.end_date),
        peak_days=split.peak_days,
        off_peak_days=split.off_peak_days,
        outside_hours=is_outside_hours(inputs.start_date) or is_outside_hours(inputs.end_date),
        results=results,
    )
