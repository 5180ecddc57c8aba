"""Admin dashboard: catalog statistics and alerts."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import PricedProductResponse
from app.auth import get_current_admin
from app.config import get_settings
from app.database import get_db
from app.models import Category, Offer, Product
from app.services.offer_resolver import OfferResolver, utcnow

router = APIRouter(
    prefix="/admin/dashboard",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)

ALERT_LIMIT = 5


class DashboardStats(BaseModel):
    total_products: int
    in_stock_products: int
    out_of_stock_products: int
    low_stock_products: int
    featured_products: int
    total_categories: int
    total_views: int
    active_offers: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    most_viewed_products: list[PricedProductResponse]
    low_stock_alerts: list[PricedProductResponse]


@router.get("", response_model=DashboardResponse)
async def get_dashboard(db: AsyncSession = Depends(get_db)):
    settings = get_settings()
    shop_id = settings.shop_uuid
    in_shop = Product.shop_id == shop_id
    low_stock = Product.stock_quantity < settings.low_stock_threshold

    async def count_products(*conditions) -> int:
        return await db.scalar(
            select(func.count(Product.id)).where(in_shop, *conditions)
        ) or 0

    total = await count_products()
    in_stock = await count_products(Product.in_stock.is_(True))
    low = await count_products(low_stock)
    featured = await count_products(Product.featured.is_(True))
    total_categories = await db.scalar(
        select(func.count(Category.id)).where(Category.shop_id == shop_id)
    ) or 0
    total_views = await db.scalar(
        select(func.coalesce(func.sum(Product.views), 0)).where(in_shop)
    ) or 0
    active_offers = await db.scalar(
        select(func.count(Offer.id)).where(
            Offer.shop_id == shop_id,
            *OfferResolver.running_offer_filter(utcnow()),
        )
    ) or 0

    most_viewed = (await db.execute(
        select(Product).where(in_shop).order_by(Product.views.desc()).limit(ALERT_LIMIT)
    )).scalars().all()
    low_stock_products = (await db.execute(
        select(Product)
        .where(in_shop, low_stock)
        .order_by(Product.stock_quantity)
        .limit(ALERT_LIMIT)
    )).scalars().all()

    resolver = OfferResolver(db, shop_id)
    priced_viewed = await resolver.apply_offers_to_products(most_viewed)
    priced_low = await resolver.apply_offers_to_products(low_stock_products)

    return DashboardResponse(
        stats=DashboardStats(
            total_products=total,
            in_stock_products=in_stock,
            out_of_stock_products=total - in_stock,
            low_stock_products=low,
            featured_products=featured,
            total_categories=total_categories,
            total_views=total_views,
            active_offers=active_offers,
        ),
        most_viewed_products=[PricedProductResponse.from_priced(p) for p in priced_viewed],
        low_stock_alerts=[PricedProductResponse.from_priced(p) for p in priced_low],
    )
