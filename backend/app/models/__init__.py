"""SQLAlchemy models."""

from app.models.category import Category
from app.models.offer import Offer, offer_categories, offer_products
from app.models.product import Product
from app.models.shop import Shop
from app.models.user import AdminUser

__all__ = [
    "AdminUser",
    "Category",
    "Offer",
    "Product",
    "Shop",
    "offer_categories",
    "offer_products",
]
