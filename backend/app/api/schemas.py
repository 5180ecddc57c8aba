"""Response schemas shared by the public and admin routers."""

import math
import uuid
from datetime import datetime
from decimal import Decimal

from fastapi import HTTPException
from pydantic import BaseModel

from app.services.offer_engine import DiscountType, PricedProduct


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class ProductSummary(BaseModel):
    id: uuid.UUID
    name: str
    name_english: str
    price: Decimal
    original_price: Decimal | None = None
    images: list[str]

    model_config = {"from_attributes": True}


class CategorySummary(BaseModel):
    id: uuid.UUID
    name: str
    name_english: str

    model_config = {"from_attributes": True}


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    name_english: str
    slug: str
    description: str
    icon: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProductResponse(BaseModel):
    id: uuid.UUID
    category_id: uuid.UUID
    name: str
    name_english: str
    price: Decimal
    original_price: Decimal | None
    unit: str
    description: str
    usage_instructions: str
    benefits: list[str]
    precautions: list[str]
    images: list[str]
    in_stock: bool
    stock_quantity: int
    featured: bool
    views: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class AppliedOfferResponse(BaseModel):
    offer_id: uuid.UUID
    title: str
    discount_type: DiscountType
    discount_value: Decimal
    discounted_price: Decimal
    savings_amount: Decimal

    model_config = {"from_attributes": True}


class PricedProductResponse(ProductResponse):
    effective_price: Decimal
    has_active_offer: bool
    applied_offer: AppliedOfferResponse | None = None

    @classmethod
    def from_priced(cls, priced: PricedProduct) -> "PricedProductResponse":
        base = ProductResponse.model_validate(priced.product)
        return cls(
            **base.model_dump(),
            effective_price=priced.effective_price,
            has_active_offer=priced.has_active_offer,
            applied_offer=(
                AppliedOfferResponse.model_validate(priced.applied_offer)
                if priced.applied_offer
                else None
            ),
        )


class ShopTimings(BaseModel):
    weekdays: str
    weekdays_english: str
    weekends: str
    weekends_english: str


class ShopSocialMedia(BaseModel):
    facebook: str = ""
    instagram: str = ""
    youtube: str = ""


class ShopResponse(BaseModel):
    id: uuid.UUID
    shop_name: str
    shop_name_english: str
    owner_name: str
    owner_name_english: str
    address: str
    address_english: str
    phone: str
    whatsapp: str
    email: str
    website: str
    description: str
    description_english: str
    timings: ShopTimings
    social_media: ShopSocialMedia
    is_active: bool
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


def parse_category_filter(category: str | None) -> uuid.UUID | None:
    """``None``/``"all"`` mean no filter; anything else must be a category id."""
    if not category or category == "all":
        return None
    try:
        return uuid.UUID(category)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid category id")
