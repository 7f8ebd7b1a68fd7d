from rental_quotes.models.pricing import CategoryPricing, PricingConfig
from rental_quotes.models.quote import Quote
from rental_quotes.schemas.pricing import CategoryPricingSchema, PricingConfigSchema, PricingTier
from rental_quotes.schemas.quote import QuoteOut


def build_category_pricing(row: CategoryPricing) -> CategoryPricingSchema:
    return CategoryPricingSchema(
        id=row.id,
        category_id=row.category_id,
        category_name=row.category_name,
        off_peak_rate=row.off_peak_rate,
        peak_rate=row.peak_rate,
        self_drive_deposit=row.self_drive_deposit or 0.0,
        tiers=[PricingTier(days=days, discount=discount) for days, discount in row.get_tiers()],
        updated_at=row.updated_at,
    )


def build_pricing_config(row: PricingConfig) -> PricingConfigSchema:
    return PricingConfigSchema(
        chauffeur_fee_per_day=row.chauffeur_fee_per_day,
        vat_percentage=row.vat_percentage,
        updated_at=row.updated_at,
    )


def build_quote_response(quote: Quote) -> QuoteOut:
    return QuoteOut(
        id=quote.id,
        quote_reference=quote.quote_reference,
        client_name=quote.client_name,
        client_email=quote.client_email,
        client_phone=quote.client_phone,
        pickup_location=quote.pickup_location,
        dropoff_location=quote.dropoff_location,
        start_date=quote.start_date,
        end_date=quote.end_date,
        has_chauffeur=quote.has_chauffeur,
        has_half_day=quote.has_half_day,
        quote_data=quote.quote_data or {},
        status=quote.status,
        expiration_date=quote.expiration_date,
        extended_expiration=quote.extended_expiration,
        booking_id=quote.booking_id,
        converted_at=quote.converted_at,
        created_by=quote.created_by,
        created_at=quote.created_at,
        updated_at=quote.updated_at,
    )


def build_category_pricing_list(rows: list) -> list:
    return [build_category_pricing(row) for row in rows]


def build_quote_response_list(quotes: list) -> list:
    return [build_quote_response(quote) for quote in quotes]
