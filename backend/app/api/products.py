"""Public API routes for the product catalog."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import CategoryResponse, Pagination, PricedProductResponse, parse_category_filter
from app.config import get_settings
from app.database import get_db
from app.models import Category, Product
from app.services.offer_engine import undiscounted
from app.services.offer_resolver import OfferResolver

router = APIRouter(prefix="/products", tags=["products"])


class ProductListResponse(BaseModel):
    products: list[PricedProductResponse]
    categories: list[CategoryResponse]
    pagination: Pagination


def search_filter(search: str):
    pattern = f"%{search}%"
    return or_(
        Product.name.ilike(pattern),
        Product.name_english.ilike(pattern),
        Product.description.ilike(pattern),
    )


@router.get("", response_model=ProductListResponse)
async def list_products(
    search: str | None = Query(None),
    category: str | None = Query(None, description="Category id or 'all'"),
    featured: bool = Query(False),
    include_offers: bool = Query(True),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """In-stock products of the shop, featured and newest first."""
    shop_id = get_settings().shop_uuid
    query = select(Product).where(Product.shop_id == shop_id, Product.in_stock.is_(True))

    if search:
        query = query.where(search_filter(search))
    category_id = parse_category_filter(category)
    if category_id:
        query = query.where(Product.category_id == category_id)
    if featured:
        query = query.where(Product.featured.is_(True))

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = (
        query.order_by(Product.featured.desc(), Product.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)
    products = result.scalars().all()

    if include_offers:
        priced = await OfferResolver(db, shop_id).apply_offers_to_products(products)
    else:
        priced = [undiscounted(p) for p in products]

    categories_result = await db.execute(
        select(Category).where(Category.shop_id == shop_id).order_by(Category.name)
    )

    return ProductListResponse(
        products=[PricedProductResponse.from_priced(p) for p in priced],
        categories=[CategoryResponse.model_validate(c) for c in categories_result.scalars().all()],
        pagination=Pagination.build(page, limit, total or 0),
    )


@router.get("/{product_id}", response_model=PricedProductResponse)
async def get_product(product_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    shop_id = get_settings().shop_uuid
    result = await db.execute(
        select(Product).where(Product.id == product_id, Product.shop_id == shop_id)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    await db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(views=Product.views + 1)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(product)

    priced = await OfferResolver(db, shop_id).apply_offers_to_product(product)
    return PricedProductResponse.from_priced(priced)
