"""Public shop profile (contact page)."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import ShopResponse
from app.config import get_settings
from app.database import get_db
from app.models import Shop

router = APIRouter(prefix="/shop", tags=["shop"])


@router.get("", response_model=ShopResponse)
async def get_shop(db: AsyncSession = Depends(get_db)):
    shop = await db.get(Shop, get_settings().shop_uuid)
    if not shop:
        raise HTTPException(status_code=404, detail="Shop not found")
    return shop
