"""Admin API routes for categories."""

import re
import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import CategoryResponse
from app.auth import get_current_admin
from app.config import get_settings
from app.database import get_db
from app.models import Category, Product

router = APIRouter(
    prefix="/admin/categories",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


# --- Schemas ---

class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    name_english: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)
    icon: str = Field("📦", max_length=20)


class CategoryUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    name_english: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    icon: str | None = Field(None, max_length=20)


class AdminCategoryResponse(CategoryResponse):
    product_count: int = 0


# --- Helpers ---

def generate_slug(name: str) -> str:
    """``"Organic Fertilizers!"`` -> ``"organic-fertilizers"``."""
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-") or "category"


async def _unique_slug(db: AsyncSession, shop_id: uuid.UUID, base: str) -> str:
    slug = base
    counter = 1
    while await db.scalar(
        select(Category.id).where(Category.shop_id == shop_id, Category.slug == slug)
    ):
        slug = f"{base}-{counter}"
        counter += 1
    return slug


async def _get_category(db: AsyncSession, category_id: uuid.UUID) -> Category:
    result = await db.execute(
        select(Category).where(
            Category.id == category_id,
            Category.shop_id == get_settings().shop_uuid,
        )
    )
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


async def _product_count(db: AsyncSession, category_id: uuid.UUID) -> int:
    count = await db.scalar(
        select(func.count(Product.id)).where(Product.category_id == category_id)
    )
    return count or 0


def _with_count(category: Category, product_count: int) -> AdminCategoryResponse:
    return AdminCategoryResponse(
        **CategoryResponse.model_validate(category).model_dump(),
        product_count=product_count,
    )


# --- Endpoints ---

@router.get("", response_model=list[AdminCategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Category, func.count(Product.id).label("product_count"))
        .outerjoin(Product, Product.category_id == Category.id)
        .where(Category.shop_id == get_settings().shop_uuid)
        .group_by(Category.id)
        .order_by(Category.name)
    )
    return [_with_count(category, count) for category, count in result.all()]


@router.get("/{category_id}", response_model=AdminCategoryResponse)
async def get_category(category_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    category = await _get_category(db, category_id)
    return _with_count(category, await _product_count(db, category_id))


@router.post("", response_model=AdminCategoryResponse, status_code=201)
async def create_category(data: CategoryCreateRequest, db: AsyncSession = Depends(get_db)):
    shop_id = get_settings().shop_uuid
    slug = await _unique_slug(db, shop_id, generate_slug(data.name_english))

    category = Category(shop_id=shop_id, slug=slug, **data.model_dump())
    db.add(category)
    await db.flush()
    await db.refresh(category)
    return _with_count(category, 0)


@router.put("/{category_id}", response_model=AdminCategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    data: CategoryUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    category = await _get_category(db, category_id)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(category, field, value)

    await db.flush()
    await db.refresh(category)
    return _with_count(category, await _product_count(db, category_id))


@router.delete("/{category_id}", status_code=204)
async def delete_category(category_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    category = await _get_category(db, category_id)
    if await _product_count(db, category_id) > 0:
        raise HTTPException(
            status_code=400,
            detail="Category still has products. Delete or move them to another category first.",
        )
    await db.delete(category)
