"""Offer resolution engine.

Decides which discount campaigns apply to a product and what the product
costs once the best one is applied.  Everything here is pure: callers load
the offers, turn them into :class:`OfferRule` objects and pass the instant
to evaluate against.  :class:`app.services.offer_resolver.OfferResolver`
connects this module to the database.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class MalformedOfferError(ValueError):
    """A stored offer is missing data needed to price with it."""


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime.

    SQLite hands back naive datetimes; they are stored in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats such as 0.1 keep their printed value
    return Decimal(str(value))


# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OfferRule:
    """The parts of an offer that matter for pricing."""

    offer_id: uuid.UUID
    title: str
    discount_type: DiscountType
    discount_value: Decimal
    start_date: datetime
    end_date: datetime
    minimum_order_amount: Decimal = ZERO
    maximum_discount_amount: Optional[Decimal] = None
    product_ids: frozenset = frozenset()
    category_ids: frozenset = frozenset()
    applicable_to_all: bool = False
    is_active: bool = True
    usage_limit: Optional[int] = None
    used_count: int = 0

    @classmethod
    def from_model(cls, offer: Any) -> "OfferRule":
        """Build a rule from an ``Offer`` row (or anything shaped like one)."""
        if offer.discount_value is None:
            raise MalformedOfferError(f"offer {offer.id} has no discount value")
        try:
            discount_type = DiscountType(offer.discount_type)
        except ValueError as exc:
            raise MalformedOfferError(
                f"offer {offer.id} has unknown discount type {offer.discount_type!r}"
            ) from exc
        discount_value = to_decimal(offer.discount_value)
        if discount_value < 0:
            raise MalformedOfferError(f"offer {offer.id} has a negative discount value")
        if offer.start_date is None or offer.end_date is None:
            raise MalformedOfferError(f"offer {offer.id} has no activity window")

        cap = offer.maximum_discount_amount
        return cls(
            offer_id=offer.id,
            title=offer.title,
            discount_type=discount_type,
            discount_value=discount_value,
            start_date=as_utc(offer.start_date),
            end_date=as_utc(offer.end_date),
            minimum_order_amount=to_decimal(offer.minimum_order_amount or 0),
            maximum_discount_amount=to_decimal(cap) if cap is not None else None,
            product_ids=frozenset(offer.product_ids),
            category_ids=frozenset(offer.category_ids),
            applicable_to_all=bool(offer.applicable_to_all),
            is_active=bool(offer.is_active),
            usage_limit=offer.usage_limit,
            used_count=offer.used_count or 0,
        )

    def is_in_window(self, now: datetime) -> bool:
        now = as_utc(now)
        return self.start_date <= now <= self.end_date

    def has_usage_left(self) -> bool:
        return self.usage_limit is None or self.used_count < self.usage_limit

    def is_running(self, now: datetime) -> bool:
        return self.is_active and self.is_in_window(now) and self.has_usage_left()

    def covers(self, product_id: Any, category_id: Any) -> bool:
        return (
            self.applicable_to_all
            or product_id in self.product_ids
            or (category_id is not None and category_id in self.category_ids)
        )


@dataclass(frozen=True, slots=True)
class AppliedOffer:
    """The winning offer for a product and the price it produces."""

    offer_id: uuid.UUID
    title: str
    discount_type: DiscountType
    discount_value: Decimal
    discounted_price: Decimal
    savings_amount: Decimal


@dataclass(frozen=True, slots=True)
class PricedProduct:
    """Read-only pricing view of a product.  The product itself is untouched."""

    product: Any
    price: Decimal
    effective_price: Decimal
    applied_offer: Optional[AppliedOffer] = None

    @property
    def has_active_offer(self) -> bool:
        return self.applied_offer is not None

    @property
    def unit_savings(self) -> Decimal:
        return self.price - self.effective_price


@dataclass(frozen=True, slots=True)
class CartItem:
    product_id: uuid.UUID
    quantity: int
    product: Any


@dataclass(frozen=True, slots=True)
class CartLine:
    product_id: uuid.UUID
    quantity: int
    product: PricedProduct
    item_total: Decimal
    item_savings: Decimal


@dataclass(frozen=True, slots=True)
class CartTotal:
    subtotal: Decimal
    total_savings: Decimal
    total: Decimal
    items_with_offers: list[CartLine]


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


def is_eligible(
    offer: OfferRule,
    *,
    product_id: Any,
    category_id: Any,
    now: datetime,
    order_amount: Optional[Decimal] = None,
) -> bool:
    """True when *offer* may discount the product at *now*.

    The minimum order amount is only checked when *order_amount* is given;
    catalog pages have no cart to compare against.
    """
    if not offer.is_running(now):
        return False
    if not offer.covers(product_id, category_id):
        return False
    if order_amount is not None and offer.minimum_order_amount > to_decimal(order_amount):
        return False
    return True


def eligible_offers(
    offers: Iterable[OfferRule],
    *,
    product_id: Any,
    category_id: Any,
    now: datetime,
    order_amount: Optional[Decimal] = None,
) -> list[OfferRule]:
    return [
        offer
        for offer in offers
        if is_eligible(
            offer,
            product_id=product_id,
            category_id=category_id,
            now=now,
            order_amount=order_amount,
        )
    ]


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


def quote_offer(price: Decimal, offer: OfferRule) -> AppliedOffer:
    """Price *price* with a single offer, without checking eligibility."""
    price = to_decimal(price)
    match offer.discount_type:
        case DiscountType.PERCENTAGE:
            savings = price * offer.discount_value / 100
            discounted = price - savings
        case DiscountType.FIXED:
            savings = min(offer.discount_value, price)
            discounted = max(ZERO, price - offer.discount_value)
        case _:
            raise MalformedOfferError(f"unsupported discount type {offer.discount_type!r}")

    # A cap of zero means "no cap", as in the admin form.
    cap = offer.maximum_discount_amount
    if cap and savings > cap:
        savings = cap
        discounted = price - savings

    # Percentages above 100 written before validation existed.
    if discounted < ZERO:
        savings, discounted = price, ZERO

    return AppliedOffer(
        offer_id=offer.offer_id,
        title=offer.title,
        discount_type=offer.discount_type,
        discount_value=offer.discount_value,
        discounted_price=discounted,
        savings_amount=savings,
    )


def select_best_offer(price: Decimal, offers: Iterable[OfferRule]) -> Optional[AppliedOffer]:
    """Return the offer giving the lowest price, or None if none beats *price*.

    Offers are tried in the order given and a candidate only replaces the
    current best when its price is strictly lower, so the first offer to
    reach the best price wins.  The resolver orders candidates by discount
    value (highest first), then creation time, then id.
    """
    price = to_decimal(price)
    best: Optional[AppliedOffer] = None
    best_price = price
    for offer in offers:
        candidate = quote_offer(price, offer)
        if candidate.discounted_price < best_price:
            best = candidate
            best_price = candidate.discounted_price
    return best


def undiscounted(product: Any) -> PricedProduct:
    """Base-price view of *product*.  Never raises.

    An unparseable price is passed through as stored.
    """
    price = getattr(product, "price", None)
    try:
        price = to_decimal(price)
    except ArithmeticError:
        logger.warning("Product %s has an unusable price %r", getattr(product, "id", "?"), price)
    return PricedProduct(product=product, price=price, effective_price=price)


def price_product(
    product: Any,
    offers: Sequence[OfferRule],
    *,
    now: datetime,
    order_amount: Optional[Decimal] = None,
) -> PricedProduct:
    """Apply the best eligible offer to *product*.

    Never raises: on any error the product keeps its base price.
    """
    try:
        price = to_decimal(product.price)
        candidates = eligible_offers(
            offers,
            product_id=product.id,
            category_id=product.category_id,
            now=now,
            order_amount=order_amount,
        )
        best = select_best_offer(price, candidates)
    except Exception:
        logger.exception("Error applying offers to product %s", getattr(product, "id", "?"))
        return undiscounted(product)

    if best is None:
        return PricedProduct(product=product, price=price, effective_price=price)
    return PricedProduct(
        product=product,
        price=price,
        effective_price=best.discounted_price,
        applied_offer=best,
    )


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


def order_subtotal(items: Iterable[CartItem]) -> Decimal:
    """Undiscounted cart value, used for minimum-order checks."""
    return sum(
        (to_decimal(item.product.price) * item.quantity for item in items),
        ZERO,
    )


def price_cart(
    items: Sequence[CartItem],
    offers: Sequence[OfferRule],
    *,
    now: datetime,
) -> CartTotal:
    """Price every cart line and aggregate the totals.

    Minimum order amounts are compared with the undiscounted subtotal,
    computed once before any line is priced.  Discounts on one line never
    change whether another line qualifies.
    """
    order_amount = order_subtotal(items)

    subtotal = ZERO
    total_savings = ZERO
    lines: list[CartLine] = []
    for item in items:
        priced = price_product(item.product, offers, now=now, order_amount=order_amount)
        item_savings = priced.unit_savings * item.quantity
        subtotal += priced.price * item.quantity
        total_savings += item_savings
        lines.append(
            CartLine(
                product_id=item.product_id,
                quantity=item.quantity,
                product=priced,
                item_total=priced.effective_price * item.quantity,
                item_savings=item_savings,
            )
        )

    return CartTotal(
        subtotal=subtotal,
        total_savings=total_savings,
        total=subtotal - total_savings,
        items_with_offers=lines,
    )
