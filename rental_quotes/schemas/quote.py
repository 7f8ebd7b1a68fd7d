from pydantic import BaseModel, Field, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from rental_quotes.core.enums import RentalType, QuoteStatus


class ExtraFee(BaseModel):
    description: str = ""
    amount: float = Field(0.0, ge=0)


class QuoteInputs(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    has_half_day: bool = False
    has_chauffeur: bool = False
    rental_type: RentalType = RentalType.SELF_DRIVE
    chauffeur_rate: Optional[float] = Field(None, ge=0)
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    different_location_charge: float = Field(0.0, ge=0)
    outside_hours_charge: float = Field(0.0, ge=0)
    extra_fees: List[ExtraFee] = Field(default_factory=list)
    category_ids: Optional[List[int]] = None

    @model_validator(mode="after")
    def sync_chauffeur(self):
        # a chauffeur flag on a self-drive request upgrades the rental type
        if self.has_chauffeur and self.rental_type == RentalType.SELF_DRIVE:
            self.rental_type = RentalType.CHAUFFEUR
        elif self.rental_type != RentalType.SELF_DRIVE:
            self.has_chauffeur = True
        return self

    @property
    def is_chauffeured(self) -> bool:
        return self.has_chauffeur or self.rental_type != RentalType.SELF_DRIVE


class TierLine(BaseModel):
    tier: int
    days: float
    rate: float
    discount: float
    amount: float


class BranchAvailability(BaseModel):
    branch_id: str
    branch_name: str
    available_count: int
    vehicle_ids: List[int]


class AvailabilityResult(BaseModel):
    available: bool = False
    branch_availability: List[BranchAvailability] = Field(default_factory=list)
    error: Optional[str] = None


class QuoteBreakdown(BaseModel):
    peak_days: int
    off_peak_days: int
    off_peak_tiers: List[TierLine] = Field(default_factory=list)
    peak_tiers: List[TierLine] = Field(default_factory=list)


class CategoryQuoteResult(BaseModel):
    category_id: int
    category_name: str
    rental_fee: float
    chauffeur_fee: float
    outside_hours_charge: float = 0.0
    different_location_charge: float = 0.0
    extra_fees: List[ExtraFee] = Field(default_factory=list)
    subtotal: float
    vat: float
    grand_total: int
    security_deposit: float
    advance_payment: int
    available: bool = False
    branch_availability: List[BranchAvailability] = Field(default_factory=list)
    availability_error: Optional[str] = None
    breakdown: QuoteBreakdown


class QuoteCalculation(BaseModel):
    rental_days: int
    peak_days: int
    off_peak_days: int
    outside_hours: bool
    results: List[CategoryQuoteResult]


class QuoteSave(BaseModel):
    client_name: str = Field(..., min_length=1)
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    inputs: QuoteInputs
    results: List[CategoryQuoteResult] = Field(default_factory=list)
    status: QuoteStatus = QuoteStatus.ACTIVE

    @model_validator(mode="after")
    def check_status(self):
        if self.status not in (QuoteStatus.ACTIVE, QuoteStatus.DRAFT):
            raise ValueError("A new quote can only be saved as Active or Draft")
        if self.status == QuoteStatus.ACTIVE and not self.results:
            raise ValueError("Select at least one vehicle category to save")
        return self


class QuoteExpirationUpdate(BaseModel):
    expiration_date: datetime


class QuoteConversion(BaseModel):
    category_name: str = Field(..., min_length=1)
    vehicle_id: int
    branch_id: Optional[int] = None


class QuoteOut(BaseModel):
    id: int
    quote_reference: str
    client_name: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    start_date: datetime
    end_date: datetime
    has_chauffeur: bool
    has_half_day: bool
    quote_data: Dict[str, Any]
    status: QuoteStatus
    expiration_date: Optional[datetime] = None
    extended_expiration: bool = False
    booking_id: Optional[int] = None
    converted_at: Optional[datetime] = None
    created_by: int
    created_at: datetime
    updated_at: Optional[datetime] = None
