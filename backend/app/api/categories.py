"""Public API routes for product categories."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import CategoryResponse
from app.config import get_settings
from app.database import get_db
from app.models import Category

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Category)
        .where(Category.shop_id == get_settings().shop_uuid)
        .order_by(Category.name)
    )
    return result.scalars().all()
