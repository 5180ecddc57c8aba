"""Admin API routes for offers (discount campaigns)."""

import logging
import uuid
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import CategorySummary, Pagination, ProductSummary
from app.auth import get_current_admin
from app.config import get_settings
from app.database import get_db
from app.models import Category, Offer, Product
from app.services.offer_engine import DiscountType, MalformedOfferError, OfferRule, as_utc
from app.services.offer_resolver import OfferResolver, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/offers",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)

NULLABLE_FIELDS = {"maximum_discount_amount", "usage_limit"}


# --- Schemas ---

class OfferCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., gt=0)
    minimum_order_amount: Decimal = Field(Decimal("0"), ge=0)
    maximum_discount_amount: Decimal | None = Field(None, ge=0)
    product_ids: list[uuid.UUID] = []
    category_ids: list[uuid.UUID] = []
    applicable_to_all: bool = False
    is_active: bool = True
    start_date: datetime
    end_date: datetime
    usage_limit: int | None = Field(None, ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return as_utc(v)


class OfferUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=1000)
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, gt=0)
    minimum_order_amount: Decimal | None = Field(None, ge=0)
    maximum_discount_amount: Decimal | None = Field(None, ge=0)
    product_ids: list[uuid.UUID] | None = None
    category_ids: list[uuid.UUID] | None = None
    applicable_to_all: bool | None = None
    is_active: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    usage_limit: int | None = Field(None, ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class OfferResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    discount_type: str
    discount_value: Decimal
    minimum_order_amount: Decimal | None
    maximum_discount_amount: Decimal | None
    product_ids: list[uuid.UUID]
    category_ids: list[uuid.UUID]
    products: list[ProductSummary]
    categories: list[CategorySummary]
    applicable_to_all: bool
    is_active: bool
    start_date: datetime
    end_date: datetime
    usage_limit: int | None
    used_count: int
    is_current_active: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_offer(cls, offer: Offer) -> "OfferResponse":
        response = cls.model_validate(offer)
        try:
            response.is_current_active = OfferRule.from_model(offer).is_running(utcnow())
        except MalformedOfferError:
            response.is_current_active = False
        return response


class OfferListResponse(BaseModel):
    offers: list[OfferResponse]
    pagination: Pagination


# --- Helpers ---

async def _get_offer(db: AsyncSession, offer_id: uuid.UUID) -> Offer:
    # populate_existing reloads columns and membership after a flush
    result = await db.execute(
        select(Offer)
        .where(
            Offer.id == offer_id,
            Offer.shop_id == get_settings().shop_uuid,
        )
        .execution_options(populate_existing=True)
    )
    offer = result.scalar_one_or_none()
    if not offer:
        raise HTTPException(status_code=404, detail="Offer not found")
    return offer


async def _load_products(db: AsyncSession, ids: list[uuid.UUID]) -> list[Product]:
    wanted = set(ids)
    if not wanted:
        return []
    result = await db.execute(
        select(Product).where(Product.id.in_(wanted), Product.shop_id == get_settings().shop_uuid)
    )
    products = list(result.scalars().all())
    if len(products) != len(wanted):
        raise HTTPException(status_code=400, detail="Some products do not exist")
    return products


async def _load_categories(db: AsyncSession, ids: list[uuid.UUID]) -> list[Category]:
    wanted = set(ids)
    if not wanted:
        return []
    result = await db.execute(
        select(Category).where(Category.id.in_(wanted), Category.shop_id == get_settings().shop_uuid)
    )
    categories = list(result.scalars().all())
    if len(categories) != len(wanted):
        raise HTTPException(status_code=400, detail="Some categories do not exist")
    return categories


def _check_offer_rules(
    discount_type: str,
    discount_value: Decimal,
    start_date: datetime,
    end_date: datetime,
) -> None:
    if as_utc(end_date) <= as_utc(start_date):
        raise HTTPException(status_code=400, detail="End date must be after start date")
    if discount_type == DiscountType.PERCENTAGE.value and discount_value > 100:
        raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100%")


def status_filter(status: str, now: datetime):
    match status:
        case "active":
            return OfferResolver.running_offer_filter(now)
        case "inactive":
            return (Offer.is_active.is_(False),)
        case "expired":
            return (Offer.end_date < now,)
    raise HTTPException(status_code=400, detail=f"Unknown status: {status}")


# --- Endpoints ---

@router.get("", response_model=OfferListResponse)
async def list_offers(
    status: str | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    query = select(Offer).where(Offer.shop_id == get_settings().shop_uuid)
    if status and status != "all":
        query = query.where(*status_filter(status, utcnow()))
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(Offer.title.ilike(pattern), Offer.description.ilike(pattern))
        )

    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    result = await db.execute(
        query.order_by(Offer.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return OfferListResponse(
        offers=[OfferResponse.from_offer(o) for o in result.scalars().all()],
        pagination=Pagination.build(page, limit, total or 0),
    )


@router.get("/{offer_id}", response_model=OfferResponse)
async def get_offer(offer_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return OfferResponse.from_offer(await _get_offer(db, offer_id))


@router.post("", response_model=OfferResponse, status_code=201)
async def create_offer(data: OfferCreateRequest, db: AsyncSession = Depends(get_db)):
    _check_offer_rules(data.discount_type.value, data.discount_value, data.start_date, data.end_date)
    products = await _load_products(db, data.product_ids)
    categories = await _load_categories(db, data.category_ids)

    fields = data.model_dump(exclude={"product_ids", "category_ids"})
    fields["discount_type"] = data.discount_type.value
    offer = Offer(
        shop_id=get_settings().shop_uuid,
        used_count=0,
        products=products,
        categories=categories,
        **fields,
    )
    db.add(offer)
    await db.flush()
    offer = await _get_offer(db, offer.id)
    logger.info("Created offer %s (%s)", offer.id, offer.title)
    return OfferResponse.from_offer(offer)


@router.put("/{offer_id}", response_model=OfferResponse)
async def update_offer(
    offer_id: uuid.UUID,
    data: OfferUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    offer = await _get_offer(db, offer_id)
    updates = data.model_dump(exclude_unset=True)

    for field, value in updates.items():
        if value is None and field not in NULLABLE_FIELDS:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
    if "discount_type" in updates:
        updates["discount_type"] = updates["discount_type"].value

    # Validate the offer as it will look after the update
    _check_offer_rules(
        updates.get("discount_type", offer.discount_type),
        updates.get("discount_value", offer.discount_value),
        updates.get("start_date", offer.start_date),
        updates.get("end_date", offer.end_date),
    )
    if "product_ids" in updates:
        offer.products = await _load_products(db, updates.pop("product_ids"))
    if "category_ids" in updates:
        offer.categories = await _load_categories(db, updates.pop("category_ids"))

    for field, value in updates.items():
        setattr(offer, field, value)

    await db.flush()
    offer = await _get_offer(db, offer_id)
    return OfferResponse.from_offer(offer)


@router.delete("/{offer_id}", status_code=204)
async def delete_offer(offer_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    offer = await _get_offer(db, offer_id)
    await db.delete(offer)
    logger.info("Deleted offer %s", offer_id)


@router.post("/{offer_id}/redeem", response_model=OfferResponse)
async def redeem_offer(offer_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Count one use of the offer against its usage limit."""
    offer = await _get_offer(db, offer_id)
    resolver = OfferResolver(db, get_settings().shop_uuid)
    if not await resolver.redeem_offer(offer_id):
        raise HTTPException(status_code=409, detail="Offer is not currently redeemable")

    offer = await _get_offer(db, offer_id)
    return OfferResponse.from_offer(offer)
