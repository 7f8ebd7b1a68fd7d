from sqlalchemy import Column, String, Boolean, Float, ForeignKey, Enum, DateTime
from sqlalchemy.orm import relationship
from rental_quotes.models.base import BaseModel
from rental_quotes.core.enums import VehicleStatus, BookingStatus


class Branch(BaseModel):
    __tablename__ = "branches"
    branch_name = Column(String(120), nullable=False)
    location = Column(String(255), nullable=False, default="")
    contact_info = Column(String(255), nullable=True)


class VehicleCategory(BaseModel):
    __tablename__ = "vehicle_categories"
    category_name = Column(String(80), unique=True, nullable=False)
    description = Column(String(255), nullable=True)


class Vehicle(BaseModel):
    __tablename__ = "vehicles"

    reg_number = Column(String(20), unique=True, nullable=False)
    category_id = Column(ForeignKey("vehicle_categories.id"), nullable=False, index=True)
    branch_id = Column(ForeignKey("branches.id"), nullable=True)

    category = relationship("VehicleCategory", backref="vehicles")
    branch = relationship("Branch", backref="vehicles")

    status = Column(
        Enum(VehicleStatus, values_callable=lambda e: [m.value for m in e]),
        default=VehicleStatus.AVAILABLE,
        nullable=False,
    )
    is_personal = Column(Boolean, default=False, nullable=False)


class Booking(BaseModel):
    __tablename__ = "bookings"

    vehicle_id = Column(ForeignKey("vehicles.id"), nullable=False, index=True)
    vehicle = relationship("Vehicle", backref="bookings")

    client_name = Column(String(120), nullable=False)
    status = Column(
        Enum(BookingStatus, values_callable=lambda e: [m.value for m in e]),
        default=BookingStatus.DRAFT,
        nullable=False,
    )
    start_datetime = Column(DateTime(timezone=True), nullable=False)
    end_datetime = Column(DateTime(timezone=True), nullable=False)

    contact = Column(String(40), nullable=True)
    client_email = Column(String(120), nullable=True)
    branch_id = Column(ForeignKey("branches.id"), nullable=True)
    start_location = Column(String(255), nullable=True)
    end_location = Column(String(255), nullable=True)
    booking_type = Column(String(20), nullable=True)
    total_amount = Column(Float, nullable=True)
    advance_payment_amount = Column(Float, nullable=True)
    security_deposit_amount = Column(Float, nullable=True)
    notes = Column(String(255), nullable=True)
