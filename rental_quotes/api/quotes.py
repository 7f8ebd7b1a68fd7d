"""Quote calculation and persistence endpoints"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.audit_decorator import audit_log
from rental_quotes.core.auth_utils import check_not_found, check_ownership
from rental_quotes.core.enums import AuditAction, QuoteStatus
from rental_quotes.core.exceptions import InputValidationError, PersistenceError, PricingComputationError
from rental_quotes.core.rate_limit import check_rate_limit
from rental_quotes.core.response_builders import build_quote_response, build_quote_response_list
from rental_quotes.core.security import get_current_user
from rental_quotes.db.session import AsyncSessionLocal, get_db
from rental_quotes.schemas.fleet import BookingOut
from rental_quotes.schemas.quote import (
    QuoteCalculation,
    QuoteConversion,
    QuoteExpirationUpdate,
    QuoteInputs,
    QuoteOut,
    QuoteSave,
)
from rental_quotes.services import quotes as quote_service
from rental_quotes.services.data_access import QuoteDataSource, SqlQuoteDataSource
from rental_quotes.services.pricing import calculate_quote
from rental_quotes.services.webhook import quote_saved_event, send_webhook
from rental_quotes.utils.idempotency import get_idempotent, set_idempotent

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])


def get_data_source() -> QuoteDataSource:
    return SqlQuoteDataSource(AsyncSessionLocal)


@router.post("/calc", response_model=QuoteCalculation)
async def calc_quote(
    payload: QuoteInputs,
    data_source: QuoteDataSource = Depends(get_data_source),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id), "calc")

    try:
        return await calculate_quote(data_source, payload)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PricingComputationError as e:
        raise HTTPException(status_code=500, detail=f"Quote could not be calculated: {e}")


@router.post("/", response_model=QuoteOut, status_code=201)
@audit_log(AuditAction.SAVE_QUOTE)
async def save_quote(
    payload: QuoteSave,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id), "quotes")

    if idempotency_key:
        prev = await get_idempotent(idempotency_key)
        if prev:
            return QuoteOut(**prev)

    try:
        quote = await quote_service.save_quote(db, payload, current_user)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    out = build_quote_response(quote)
    if idempotency_key:
        await set_idempotent(idempotency_key, out.model_dump(mode="json"))

    await send_webhook(quote_saved_event(quote))
    return out


@router.get("/", response_model=List[QuoteOut])
async def list_quotes(
    status: Optional[QuoteStatus] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    quotes = await quote_service.list_quotes(db, current_user, status=status, limit=limit, offset=offset)
    return build_quote_response_list(quotes)


@router.get("/{quote_id}", response_model=QuoteOut)
async def get_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    quote = await quote_service.get_quote(db, quote_id)
    check_not_found(quote, "Quote", quote_id)
    check_ownership(quote, current_user, "Quote")

    return build_quote_response(quote)


@router.put("/{quote_id}/expiration", response_model=QuoteOut)
@audit_log(AuditAction.EXTEND_QUOTE)
async def extend_quote_expiration(
    quote_id: int,
    payload: QuoteExpirationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id), "quotes")

    quote = await quote_service.get_quote(db, quote_id)
    check_not_found(quote, "Quote", quote_id)
    check_ownership(quote, current_user, "Quote")

    try:
        quote = await quote_service.extend_expiration(db, quote, payload.expiration_date)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return build_quote_response(quote)


@router.post("/{quote_id}/convert", response_model=BookingOut, status_code=201)
@audit_log(AuditAction.CONVERT_QUOTE)
async def convert_quote(
    quote_id: int,
    payload: QuoteConversion,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id), "quotes")

    quote = await quote_service.get_quote(db, quote_id)
    check_not_found(quote, "Quote", quote_id)
    check_ownership(quote, current_user, "Quote")

    try:
        booking = await quote_service.convert_quote_to_booking(db, quote, payload)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return BookingOut.model_validate(booking)


@router.delete("/{quote_id}")
@audit_log(AuditAction.DELETE_QUOTE)
async def delete_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id), "quotes")

    quote = await quote_service.get_quote(db, quote_id)
    check_not_found(quote, "Quote", quote_id)
    check_ownership(quote, current_user, "Quote")

    try:
        await quote_service.delete_quote(db, quote)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {"deleted": True}
