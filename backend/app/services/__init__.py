"""Application services."""

from app.services.offer_engine import (
    AppliedOffer,
    CartItem,
    CartTotal,
    DiscountType,
    OfferRule,
    PricedProduct,
    price_cart,
    price_product,
    select_best_offer,
)
from app.services.offer_resolver import OfferResolver

__all__ = [
    "AppliedOffer",
    "CartItem",
    "CartTotal",
    "DiscountType",
    "OfferResolver",
    "OfferRule",
    "PricedProduct",
    "price_cart",
    "price_product",
    "select_best_offer",
]
