from sqlalchemy import Column, String, Boolean, ForeignKey, Enum, DateTime, JSON
from sqlalchemy.orm import relationship
from rental_quotes.models.base import BaseModel
from rental_quotes.core.enums import QuoteStatus


class Quote(BaseModel):
    __tablename__ = "quotes"

    quote_reference = Column(String(32), unique=True, nullable=False, index=True)
    created_by = Column(ForeignKey("users.id"), nullable=False)
    creator = relationship("User", backref="quotes")

    client_name = Column(String(120), nullable=False)
    client_email = Column(String(120), nullable=True)
    client_phone = Column(String(40), nullable=True)
    pickup_location = Column(String(255), nullable=True)
    dropoff_location = Column(String(255), nullable=True)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    has_chauffeur = Column(Boolean, default=False, nullable=False)
    has_half_day = Column(Boolean, default=False, nullable=False)

    quote_data = Column(JSON, nullable=False, default=dict)
    quote_inputs = Column(JSON, nullable=True)

    status = Column(Enum(QuoteStatus), default=QuoteStatus.ACTIVE, nullable=False)
    expiration_date = Column(DateTime(timezone=True), nullable=True)
    extended_expiration = Column(Boolean, default=False, nullable=False)

    booking_id = Column(ForeignKey("bookings.id"), nullable=True)
    converted_at = Column(DateTime(timezone=True), nullable=True)
