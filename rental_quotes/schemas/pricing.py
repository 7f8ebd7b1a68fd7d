from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

TIER_COUNT = 9


class PricingTier(BaseModel):
    days: int = Field(0, ge=0)
    discount: float = Field(0.0, ge=0.0, le=1.0)


class CategoryPricingSchema(BaseModel):
    id: Optional[int] = None
    category_id: int
    category_name: str
    off_peak_rate: float
    peak_rate: float
    self_drive_deposit: float = 0.0
    tiers: List[PricingTier] = Field(default_factory=lambda: [PricingTier() for _ in range(TIER_COUNT)])
    updated_at: Optional[datetime] = None


class CategoryPricingUpdate(BaseModel):
    off_peak_rate: Optional[float] = Field(None, ge=0)
    peak_rate: Optional[float] = Field(None, ge=0)
    self_drive_deposit: Optional[float] = Field(None, ge=0)
    tiers: Optional[List[PricingTier]] = None

    @field_validator("tiers")
    @classmethod
    def check_tiers(cls, tiers):
        if tiers is None:
            return tiers
        if len(tiers) != TIER_COUNT:
            raise ValueError(f"Exactly {TIER_COUNT} tiers are required")
        previous = 0
        for index, tier in enumerate(tiers, start=1):
            if tier.days == 0:
                continue
            if tier.days <= previous:
                raise ValueError(
                    f"Tier {index} threshold ({tier.days} days) must be greater than {previous}"
                )
            previous = tier.days
        return tiers


class PricingConfigSchema(BaseModel):
    chauffeur_fee_per_day: float = Field(..., ge=0)
    vat_percentage: float = Field(..., ge=0, le=1)
    updated_at: Optional[datetime] = None


class PricingConfigUpdate(BaseModel):
    chauffeur_fee_per_day: Optional[float] = Field(None, ge=0)
    vat_percentage: Optional[float] = Field(None, ge=0, le=1)
