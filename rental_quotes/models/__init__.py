from rental_quotes.models.base import Base, BaseModel
from rental_quotes.models.user import User
from rental_quotes.models.audit import Audit
from rental_quotes.models.fleet import Branch, VehicleCategory, Vehicle, Booking
from rental_quotes.models.pricing import CategoryPricing, PricingConfig, TIER_COUNT
from rental_quotes.models.quote import Quote

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "Audit",
    "Branch",
    "VehicleCategory",
    "Vehicle",
    "Booking",
    "CategoryPricing",
    "PricingConfig",
    "TIER_COUNT",
    "Quote",
]
