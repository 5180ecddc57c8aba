"""Public API routes for running offers."""

import uuid
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import CategorySummary, ProductSummary
from app.config import get_settings
from app.database import get_db
from app.services.offer_engine import DiscountType
from app.services.offer_resolver import OfferResolver

router = APIRouter(prefix="/offers", tags=["offers"])


class PublicOfferResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    discount_type: DiscountType
    discount_value: Decimal
    minimum_order_amount: Decimal | None
    maximum_discount_amount: Decimal | None
    start_date: datetime
    end_date: datetime
    applicable_to_all: bool
    products: list[ProductSummary]
    categories: list[CategorySummary]

    model_config = {"from_attributes": True}


@router.get("", response_model=list[PublicOfferResponse])
async def list_running_offers(
    product_id: uuid.UUID | None = Query(None),
    category_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Offers a shopper can get right now, newest first."""
    resolver = OfferResolver(db, get_settings().shop_uuid)
    return await resolver.find_running_offers(product_id, category_id)


@router.get("/best", response_model=list[PublicOfferResponse])
async def get_best_offers(
    product_id: uuid.UUID | None = Query(None),
    category_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Biggest running discounts for a product and/or category."""
    settings = get_settings()
    resolver = OfferResolver(db, settings.shop_uuid)
    return await resolver.get_best_offers(
        product_id, category_id, limit=settings.best_offers_limit
    )
