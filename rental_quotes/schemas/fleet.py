from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from rental_quotes.core.enums import VehicleStatus, BookingStatus


class BranchSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branch_name: str
    location: str = ""


class VehicleSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    branch_id: Optional[int] = None
    status: VehicleStatus = VehicleStatus.AVAILABLE
    is_personal: bool = False


class BookingSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vehicle_id: int
    status: BookingStatus
    start_datetime: datetime
    end_datetime: datetime


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vehicle_id: int
    branch_id: Optional[int] = None
    client_name: str
    contact: Optional[str] = None
    client_email: Optional[str] = None
    status: BookingStatus
    booking_type: Optional[str] = None
    start_datetime: datetime
    end_datetime: datetime
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    total_amount: Optional[float] = None
    advance_payment_amount: Optional[float] = None
    security_deposit_amount: Optional[float] = None
    notes: Optional[str] = None
