from sqlalchemy import Column, String, Float, Integer, ForeignKey
from sqlalchemy.orm import relationship
from rental_quotes.models.base import BaseModel

TIER_COUNT = 9


class CategoryPricing(BaseModel):
    """Per-category rates, deposit and the nine cumulative discount tiers."""

    __tablename__ = "category_pricing"

    category_id = Column(ForeignKey("vehicle_categories.id"), unique=True, nullable=False)
    category = relationship("VehicleCategory", backref="pricing")

    category_name = Column(String(80), nullable=False)
    off_peak_rate = Column(Float, nullable=False, default=0.0)
    peak_rate = Column(Float, nullable=False, default=0.0)
    self_drive_deposit = Column(Float, nullable=False, default=0.0)

    tier1_days = Column(Integer, nullable=False, default=0)
    tier1_discount = Column(Float, nullable=False, default=0.0)
    tier2_days = Column(Integer, nullable=False, default=0)
    tier2_discount = Column(Float, nullable=False, default=0.0)
    tier3_days = Column(Integer, nullable=False, default=0)
    tier3_discount = Column(Float, nullable=False, default=0.0)
    tier4_days = Column(Integer, nullable=False, default=0)
    tier4_discount = Column(Float, nullable=False, default=0.0)
    tier5_days = Column(Integer, nullable=False, default=0)
    tier5_discount = Column(Float, nullable=False, default=0.0)
    tier6_days = Column(Integer, nullable=False, default=0)
    tier6_discount = Column(Float, nullable=False, default=0.0)
    tier7_days = Column(Integer, nullable=False, default=0)
    tier7_discount = Column(Float, nullable=False, default=0.0)
    tier8_days = Column(Integer, nullable=False, default=0)
    tier8_discount = Column(Float, nullable=False, default=0.0)
    tier9_days = Column(Integer, nullable=False, default=0)
    tier9_discount = Column(Float, nullable=False, default=0.0)

    def get_tiers(self) -> list[tuple[int, float]]:
        return [
            (getattr(self, f"tier{i}_days") or 0, getattr(self, f"tier{i}_discount") or 0.0)
            for i in range(1, TIER_COUNT + 1)
        ]

    def set_tiers(self, tiers) -> None:
        for i, (days, discount) in enumerate(tiers, start=1):
            setattr(self, f"tier{i}_days", days)
            setattr(self, f"tier{i}_discount", discount)


class PricingConfig(BaseModel):
    __tablename__ = "pricing_config"

    chauffeur_fee_per_day = Column(Float, nullable=False, default=4000.0)
    vat_percentage = Column(Float, nullable=False, default=0.16)
    updated_by = Column(ForeignKey("users.id"), nullable=True)
