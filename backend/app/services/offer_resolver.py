"""Database-backed offer resolution.

Loads candidate offers for the configured shop and hands them to the pure
functions in :mod:`app.services.offer_engine`.  A failed lookup never
reaches the caller: products fall back to their base price.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category, Offer, Product
from app.services.offer_engine import (
    CartItem,
    CartTotal,
    MalformedOfferError,
    OfferRule,
    PricedProduct,
    order_subtotal,
    price_cart,
    price_product,
    undiscounted,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OfferResolver:
    """Prices products of one shop against its currently running offers."""

    def __init__(
        self,
        session: AsyncSession,
        shop_id: uuid.UUID,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.session = session
        self.shop_id = shop_id
        self._clock = clock

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    @staticmethod
    def running_offer_filter(now: datetime):
        """Clauses for offers that are switched on, in their window and not used up."""
        return (
            Offer.is_active.is_(True),
            Offer.start_date <= now,
            Offer.end_date >= now,
            or_(Offer.usage_limit.is_(None), Offer.used_count < Offer.usage_limit),
        )

    @staticmethod
    def scope_filter(
        product_ids: Iterable[uuid.UUID] = (),
        category_ids: Iterable[uuid.UUID] = (),
    ):
        product_ids = [pid for pid in product_ids if pid is not None]
        category_ids = [cid for cid in category_ids if cid is not None]
        conditions = [Offer.applicable_to_all.is_(True)]
        if product_ids:
            conditions.append(Offer.products.any(Product.id.in_(product_ids)))
        if category_ids:
            conditions.append(Offer.categories.any(Category.id.in_(category_ids)))
        return or_(*conditions)

    async def fetch_offer_rules(
        self,
        *,
        product_ids: Iterable[uuid.UUID],
        category_ids: Iterable[uuid.UUID],
        now: datetime,
        order_amount: Optional[Decimal] = None,
    ) -> list[OfferRule]:
        """Load the offers that may apply to any of the given products.

        Rows that cannot be priced with are skipped with a warning.
        """
        stmt = select(Offer).where(
            Offer.shop_id == self.shop_id,
            *self.running_offer_filter(now),
            self.scope_filter(product_ids, category_ids),
        )
        if order_amount is not None:
            stmt = stmt.where(
                or_(
                    Offer.minimum_order_amount.is_(None),
                    Offer.minimum_order_amount <= order_amount,
                )
            )
        stmt = stmt.order_by(Offer.discount_value.desc(), Offer.created_at, Offer.id)

        result = await self.session.execute(stmt)
        rules = []
        for offer in result.scalars().all():
            try:
                rules.append(OfferRule.from_model(offer))
            except MalformedOfferError as exc:
                logger.warning("Skipping offer %s: %s", offer.id, exc)
        return rules

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    async def apply_offers_to_product(
        self, product: Product, order_amount: Optional[Decimal] = None
    ) -> PricedProduct:
        priced = await self.apply_offers_to_products([product], order_amount)
        return priced[0]

    async def apply_offers_to_products(
        self, products: Sequence[Product], order_amount: Optional[Decimal] = None
    ) -> list[PricedProduct]:
        """Price each product independently; output order matches input order."""
        if not products:
            return []
        now = self._clock()
        try:
            async with self.session.begin_nested():
                rules = await self.fetch_offer_rules(
                    product_ids={p.id for p in products},
                    category_ids={p.category_id for p in products},
                    now=now,
                    order_amount=order_amount,
                )
        except Exception:
            logger.exception(
                "Could not load offers for %d product(s); using base prices", len(products)
            )
            return [undiscounted(p) for p in products]

        return [
            price_product(p, rules, now=now, order_amount=order_amount) for p in products
        ]

    async def calculate_cart_total(self, items: Sequence[CartItem]) -> CartTotal:
        now = self._clock()
        rules: list[OfferRule] = []
        if items:
            try:
                async with self.session.begin_nested():
                    rules = await self.fetch_offer_rules(
                        product_ids={item.product.id for item in items},
                        category_ids={item.product.category_id for item in items},
                        now=now,
                        order_amount=order_subtotal(items),
                    )
            except Exception:
                logger.exception("Could not load offers for cart; using base prices")
        return price_cart(items, rules, now=now)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def find_running_offers(
        self,
        product_id: Optional[uuid.UUID] = None,
        category_id: Optional[uuid.UUID] = None,
        *,
        by_discount: bool = False,
        limit: Optional[int] = None,
    ) -> list[Offer]:
        """Running offers, optionally narrowed to a product and/or category.

        Offers applicable to everything are always included.
        """
        stmt = select(Offer).where(
            Offer.shop_id == self.shop_id,
            *self.running_offer_filter(self._clock()),
        )
        if product_id or category_id:
            stmt = stmt.where(
                self.scope_filter(
                    [product_id] if product_id else [],
                    [category_id] if category_id else [],
                )
            )
        if by_discount:
            stmt = stmt.order_by(Offer.discount_value.desc(), Offer.created_at, Offer.id)
        else:
            stmt = stmt.order_by(Offer.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_best_offers(
        self,
        product_id: Optional[uuid.UUID] = None,
        category_id: Optional[uuid.UUID] = None,
        limit: int = 5,
    ) -> list[Offer]:
        try:
            async with self.session.begin_nested():
                return await self.find_running_offers(
                    product_id, category_id, by_discount=True, limit=limit
                )
        except Exception:
            logger.exception("Error getting best offers")
            return []

    # ------------------------------------------------------------------
    # Redemption
    # ------------------------------------------------------------------

    async def redeem_offer(self, offer_id: uuid.UUID) -> bool:
        """Count one use of a running offer.

        The check and the increment happen in a single UPDATE so concurrent
        redemptions cannot push ``used_count`` past ``usage_limit``.
        Returns False when the offer is unknown, not running or used up.
        """
        stmt = (
            update(Offer)
            .where(
                Offer.id == offer_id,
                Offer.shop_id == self.shop_id,
                *self.running_offer_filter(self._clock()),
            )
            .values(used_count=Offer.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        redeemed = result.rowcount == 1
        if redeemed:
            logger.info("Redeemed offer %s", offer_id)
        return redeemed
