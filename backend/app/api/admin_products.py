"""Admin API routes for products."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.products import search_filter
from app.api.schemas import Pagination, PricedProductResponse, ProductResponse, parse_category_filter
from app.auth import get_current_admin
from app.config import get_settings
from app.database import get_db
from app.models import Category, Product
from app.services.offer_resolver import OfferResolver

router = APIRouter(
    prefix="/admin/products",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)

# Columns that may be cleared with an explicit null on update
NULLABLE_FIELDS = {"original_price"}


# --- Schemas ---

class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    name_english: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    original_price: Decimal | None = Field(None, ge=0)
    unit: str = Field(..., min_length=1, max_length=50)
    category_id: uuid.UUID
    description: str = Field("", max_length=2000)
    usage_instructions: str = Field("", max_length=1000)
    benefits: list[str] = []
    precautions: list[str] = []
    images: list[str] = []
    in_stock: bool = True
    stock_quantity: int = Field(0, ge=0)
    featured: bool = False


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    name_english: str | None = Field(None, min_length=1, max_length=200)
    price: Decimal | None = Field(None, ge=0)
    original_price: Decimal | None = Field(None, ge=0)
    unit: str | None = Field(None, min_length=1, max_length=50)
    category_id: uuid.UUID | None = None
    description: str | None = Field(None, max_length=2000)
    usage_instructions: str | None = Field(None, max_length=1000)
    benefits: list[str] | None = None
    precautions: list[str] | None = None
    images: list[str] | None = None
    in_stock: bool | None = None
    stock_quantity: int | None = Field(None, ge=0)
    featured: bool | None = None


class AdminProductListResponse(BaseModel):
    products: list[PricedProductResponse]
    pagination: Pagination


# --- Helpers ---

async def _get_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    result = await db.execute(
        select(Product).where(
            Product.id == product_id,
            Product.shop_id == get_settings().shop_uuid,
        )
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def _ensure_category(db: AsyncSession, category_id: uuid.UUID) -> None:
    result = await db.execute(
        select(Category.id).where(
            Category.id == category_id,
            Category.shop_id == get_settings().shop_uuid,
        )
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=400, detail="Category does not exist")


# --- Endpoints ---

@router.get("", response_model=AdminProductListResponse)
async def list_products(
    search: str | None = Query(None),
    category: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    shop_id = get_settings().shop_uuid
    query = select(Product).where(Product.shop_id == shop_id)
    if search:
        query = query.where(search_filter(search))
    category_id = parse_category_filter(category)
    if category_id:
        query = query.where(Product.category_id == category_id)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    result = await db.execute(
        query.order_by(Product.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    products = result.scalars().all()
    priced = await OfferResolver(db, shop_id).apply_offers_to_products(products)

    return AdminProductListResponse(
        products=[PricedProductResponse.from_priced(p) for p in priced],
        pagination=Pagination.build(page, limit, total or 0),
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await _get_product(db, product_id)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(data: ProductCreateRequest, db: AsyncSession = Depends(get_db)):
    await _ensure_category(db, data.category_id)

    product = Product(shop_id=get_settings().shop_uuid, **data.model_dump())
    db.add(product)
    await db.flush()
    await db.refresh(product)
    return product


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    data: ProductUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    product = await _get_product(db, product_id)
    updates = data.model_dump(exclude_unset=True)

    for field, value in updates.items():
        if value is None and field not in NULLABLE_FIELDS:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
    if "category_id" in updates:
        await _ensure_category(db, updates["category_id"])

    for field, value in updates.items():
        setattr(product, field, value)

    await db.flush()
    await db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    product = await _get_product(db, product_id)
    await db.delete(product)
