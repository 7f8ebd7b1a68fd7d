"""Pricing administration endpoints"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from rental_quotes.core.audit_decorator import audit_log
from rental_quotes.core.auth_utils import check_not_found
from rental_quotes.core.enums import AuditAction
from rental_quotes.core.rate_limit import check_rate_limit
from rental_quotes.core.response_builders import (
    build_category_pricing,
    build_category_pricing_list,
    build_pricing_config,
)
from rental_quotes.core.security import get_current_user, require_admin
from rental_quotes.db.session import get_db
from rental_quotes.models.pricing import CategoryPricing, PricingConfig
from rental_quotes.schemas.pricing import (
    CategoryPricingSchema,
    CategoryPricingUpdate,
    PricingConfigSchema,
    PricingConfigUpdate,
)

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.get("/categories", response_model=List[CategoryPricingSchema])
async def list_category_pricing(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(select(CategoryPricing).order_by(CategoryPricing.category_name))
    return build_category_pricing_list(res.scalars().all())


@router.put("/categories/{pricing_id}", response_model=CategoryPricingSchema)
@audit_log(AuditAction.UPDATE_CATEGORY_PRICING)
async def update_category_pricing(
    pricing_id: int,
    payload: CategoryPricingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id), "pricing")

    res = await db.execute(select(CategoryPricing).where(CategoryPricing.id == pricing_id))
    pricing = res.scalars().first()
    check_not_found(pricing, "Category pricing", pricing_id)

    changes = payload.model_dump(exclude_unset=True, exclude={"tiers"})
    for field, value in changes.items():
        if value is not None:
            setattr(pricing, field, value)
    if payload.tiers is not None:
        pricing.set_tiers((tier.days, tier.discount) for tier in payload.tiers)

    await db.commit()
    await db.refresh(pricing)

    return build_category_pricing(pricing)


@router.get("/config", response_model=PricingConfigSchema)
async def get_pricing_config(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(select(PricingConfig).order_by(PricingConfig.id).limit(1))
    config = res.scalars().first()
    check_not_found(config, "Pricing config")

    return build_pricing_config(config)


@router.put("/config", response_model=PricingConfigSchema)
@audit_log(AuditAction.UPDATE_PRICING_CONFIG)
async def update_pricing_config(
    payload: PricingConfigUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id), "pricing")

    res = await db.execute(select(PricingConfig).order_by(PricingConfig.id).limit(1))
    config = res.scalars().first()
    if config is None:
        config = PricingConfig()
        db.add(config)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(config, field, value)
    config.updated_by = int(current_user.id)

    await db.commit()
    await db.refresh(config)

    return build_pricing_config(config)
