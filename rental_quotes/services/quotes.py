"""Quote persistence and lifecycle."""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from rental_quotes.core.auth_utils import filter_by_user
from rental_quotes.core.config import settings
from rental_quotes.core.enums import (
    BLOCKING_BOOKING_STATUSES,
    BookingStatus,
    QuoteStatus,
    RentalType,
    VehicleStatus,
)
from rental_quotes.core.exceptions import InputValidationError, PersistenceError
from rental_quotes.core.metrics import quotes_saved, track_db_operation
from rental_quotes.models.fleet import Booking, Vehicle
from rental_quotes.models.quote import Quote
from rental_quotes.models.user import User
from rental_quotes.schemas.quote import QuoteConversion, QuoteSave

logger = logging.getLogger(__name__)


def generate_quote_reference(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"QT-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


@track_db_operation("insert", "quotes")
async def save_quote(db: AsyncSession, payload: QuoteSave, user: User) -> Quote:
    """Persist the reviewed quote exactly as calculated; results are never recomputed here."""
    inputs = payload.inputs
    if inputs.start_date is None or inputs.end_date is None:
        raise InputValidationError("Please select start and end dates")

    now = datetime.now(timezone.utc)
    quote = Quote(
        quote_reference=generate_quote_reference(now),
        created_by=int(user.id),
        client_name=payload.client_name,
        client_email=payload.client_email,
        client_phone=payload.client_phone,
        pickup_location=inputs.pickup_location,
        dropoff_location=inputs.dropoff_location,
        start_date=inputs.start_date,
        end_date=inputs.end_date,
        has_chauffeur=inputs.is_chauffeured,
        has_half_day=inputs.has_half_day,
        quote_data={r.category_name: r.model_dump(mode="json") for r in payload.results},
        quote_inputs=inputs.model_dump(mode="json"),
        status=payload.status,
        expiration_date=now + timedelta(days=settings.QUOTE_VALIDITY_DAYS),
    )

    try:
        db.add(quote)
        await db.commit()
        await db.refresh(quote)
    except SQLAlchemyError as e:
        await db.rollback()
        quotes_saved.labels(status="error").inc()
        logger.error(f"Saving quote for {payload.client_name} failed: {e}")
        raise PersistenceError(f"Failed to save quote: {e}") from e

    quotes_saved.labels(status=str(payload.status)).inc()
    logger.info(f"Saved quote {quote.quote_reference} ({len(payload.results)} categories)")
    return quote


async def list_quotes(
    db: AsyncSession,
    user: User,
    status: Optional[QuoteStatus] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Quote]:
    q = filter_by_user(select(Quote), Quote, user)
    if status:
        q = q.where(Quote.status == status)
    q = q.order_by(Quote.created_at.desc(), Quote.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    return list(res.scalars().all())


async def get_quote(db: AsyncSession, quote_id: int) -> Optional[Quote]:
    res = await db.execute(select(Quote).where(Quote.id == quote_id))
    return res.scalars().first()


async def extend_expiration(db: AsyncSession, quote: Quote, expiration_date: datetime) -> Quote:
    if quote.status == QuoteStatus.CONVERTED:
        raise InputValidationError("This quote has already been converted to a booking")

    quote.expiration_date = expiration_date
    quote.extended_expiration = True
    quote.status = QuoteStatus.ACTIVE
    try:
        await db.commit()
        await db.refresh(quote)
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(f"Failed to update quote expiration: {e}") from e
    return quote


async def expire_quotes(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Mark active quotes past their expiration date as expired; returns how many changed."""
    now = now or datetime.now(timezone.utc)
    res = await db.execute(
        update(Quote)
        .where(Quote.status == QuoteStatus.ACTIVE)
        .where(Quote.expiration_date.is_not(None))
        .where(Quote.expiration_date < now)
        .values(status=QuoteStatus.EXPIRED)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    expired = res.rowcount or 0
    if expired:
        logger.info(f"Expired {expired} quotes")
    return expired


async def _vehicle_is_booked(db: AsyncSession, vehicle_id: int, start: datetime, end: datetime) -> bool:
    res = await db.execute(
        select(Booking.id)
        .where(Booking.vehicle_id == vehicle_id)
        .where(Booking.status.in_(BLOCKING_BOOKING_STATUSES))
        .where(Booking.start_datetime <= end)
        .where(Booking.end_datetime >= start)
        .limit(1)
    )
    return res.scalars().first() is not None


@track_db_operation("insert", "bookings")
async def convert_quote_to_booking(db: AsyncSession, quote: Quote, payload: QuoteConversion) -> Booking:
    """Book one vehicle of a quoted category at the quoted price and mark the quote converted."""
    if quote.status == QuoteStatus.CONVERTED:
        raise InputValidationError("This quote has already been converted to a booking")
    if not quote.client_phone:
        raise InputValidationError("Phone number is required to create a booking")
    if not quote.pickup_location or not quote.dropoff_location:
        raise InputValidationError("Pickup and dropoff locations are required to create a booking")

    category_quote = (quote.quote_data or {}).get(payload.category_name)
    if not category_quote:
        raise InputValidationError(f"Category {payload.category_name} is not part of this quote")

    res = await db.execute(select(Vehicle).where(Vehicle.id == payload.vehicle_id))
    vehicle = res.scalars().first()
    if vehicle is None:
        raise InputValidationError(f"Vehicle {payload.vehicle_id} not found")
    if vehicle.category_id != category_quote.get("category_id"):
        raise InputValidationError(f"Vehicle {payload.vehicle_id} is not a {payload.category_name}")
    if vehicle.status != VehicleStatus.AVAILABLE or vehicle.is_personal:
        raise InputValidationError(f"Vehicle {payload.vehicle_id} cannot be hired out")
    if payload.branch_id is not None and vehicle.branch_id is not None and vehicle.branch_id != payload.branch_id:
        raise InputValidationError(f"Vehicle {payload.vehicle_id} is not at branch {payload.branch_id}")

    # handover at opening, return before closing
    start = quote.start_date.replace(hour=9, minute=0, second=0, microsecond=0)
    end = quote.end_date.replace(hour=17, minute=0, second=0, microsecond=0)
    if await _vehicle_is_booked(db, vehicle.id, start, end):
        raise InputValidationError(f"Vehicle {payload.vehicle_id} is already booked for these dates")

    booking_type = (quote.quote_inputs or {}).get("rental_type")
    if not booking_type:
        booking_type = str(RentalType.CHAUFFEUR if quote.has_chauffeur else RentalType.SELF_DRIVE)

    booking = Booking(
        vehicle_id=vehicle.id,
        branch_id=payload.branch_id if payload.branch_id is not None else vehicle.branch_id,
        client_name=quote.client_name,
        contact=quote.client_phone,
        client_email=quote.client_email,
        status=BookingStatus.ACTIVE,
        booking_type=booking_type,
        start_datetime=start,
        end_datetime=end,
        start_location=quote.pickup_location,
        end_location=quote.dropoff_location,
        total_amount=category_quote.get("grand_total"),
        advance_payment_amount=category_quote.get("advance_payment"),
        security_deposit_amount=category_quote.get("security_deposit"),
        notes=f"Created from quote {quote.quote_reference}",
    )

    try:
        db.add(booking)
        await db.flush()
        quote.status = QuoteStatus.CONVERTED
        quote.booking_id = booking.id
        quote.converted_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(booking)
        await db.refresh(quote)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Converting quote {quote.quote_reference} failed: {e}")
        raise PersistenceError(f"Failed to create booking: {e}") from e

    logger.info(f"Converted quote {quote.quote_reference} into booking {booking.id}")
    return booking


async def delete_quote(db: AsyncSession, quote: Quote) -> None:
    reference = quote.quote_reference
    try:
        await db.delete(quote)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(f"Failed to delete quote: {e}") from e
    logger.info(f"Deleted quote {reference}")
