"""Cart price preview: totals with offers applied, nothing is stored."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import PricedProductResponse
from app.config import get_settings
from app.database import get_db
from app.models import Product
from app.services.offer_engine import CartItem
from app.services.offer_resolver import OfferResolver

router = APIRouter(prefix="/cart", tags=["cart"])


class CartItemRequest(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)


class CartQuoteRequest(BaseModel):
    items: list[CartItemRequest] = Field(..., min_length=1)


class CartLineResponse(BaseModel):
    product_id: uuid.UUID
    quantity: int
    product: PricedProductResponse
    item_total: Decimal
    item_savings: Decimal


class CartQuoteResponse(BaseModel):
    subtotal: Decimal
    total_savings: Decimal
    total: Decimal
    items_with_offers: list[CartLineResponse]


@router.post("/quote", response_model=CartQuoteResponse)
async def quote_cart(data: CartQuoteRequest, db: AsyncSession = Depends(get_db)):
    shop_id = get_settings().shop_uuid
    wanted = {item.product_id for item in data.items}
    result = await db.execute(
        select(Product).where(Product.id.in_(wanted), Product.shop_id == shop_id)
    )
    products = {p.id: p for p in result.scalars().all()}
    missing = wanted - products.keys()
    if missing:
        raise HTTPException(
            status_code=404,
            detail=f"Product not found: {', '.join(sorted(str(m) for m in missing))}",
        )

    items = [
        CartItem(product_id=item.product_id, quantity=item.quantity, product=products[item.product_id])
        for item in data.items
    ]
    cart = await OfferResolver(db, shop_id).calculate_cart_total(items)

    return CartQuoteResponse(
        subtotal=cart.subtotal,
        total_savings=cart.total_savings,
        total=cart.total,
        items_with_offers=[
            CartLineResponse(
                product_id=line.product_id,
                quantity=line.quantity,
                product=PricedProductResponse.from_priced(line.product),
                item_total=line.item_total,
                item_savings=line.item_savings,
            )
            for line in cart.items_with_offers
        ],
    )
