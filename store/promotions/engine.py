"""Promotion selection.

Walks the active promotions in priority order and decides which ones apply
to a cart. Everything here is pure: usage counters and the usage log are
read from snapshots the caller supplies and are never written.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence

from store.cart import Cart
from store.promotions.conditions import matches
from store.promotions.discounts import price
from store.promotions.model import AppliedPromotion, PricingResult, Promotion

logger = logging.getLogger(__name__)

# (promotion_id, customer) -> how many times the customer already used it
UsageLookup = Callable[[str, str], int]


def _no_usage(promotion_id: str, customer: str) -> int:
    return 0


def _utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def filter_active(promotions: Iterable[Promotion], now: Optional[datetime] = None) -> List[Promotion]:
    """Active promotions inside their date window, highest priority first.

    Naive datetimes, on either side, are read as UTC.
    """
    now = _utc(now) or datetime.now(timezone.utc)

    active = []
    for p in promotions:
        if not p.is_active:
            continue
        start, end = _utc(p.start_date), _utc(p.end_date)
        if (start is None or start <= now) and (end is None or end >= now):
            active.append(p)
    # sorted() is stable: equal priorities keep the storage order
    return sorted(active, key=lambda p: p.priority, reverse=True)


def _limit_reached(promo: Promotion, customer: Optional[str], usage_lookup: UsageLookup) -> bool:
    if promo.max_uses_total and promo.usage_count >= promo.max_uses_total:
        return True

    if promo.max_uses_per_user and customer:
        if usage_lookup(promo.id, customer) >= promo.max_uses_per_user:
            return True

    return False


def select_and_price(
    cart: Cart,
    customer: Optional[str],
    promotions: Sequence[Promotion],
    usage_lookup: Optional[UsageLookup] = None,
    *,
    strict_combinations: bool = False,
) -> PricingResult:
    """Apply promotions to `cart` in the given order.

    `promotions` must already be active and sorted by priority. A
    promotion with an empty `combines_with` ends the selection once it is
    applied. With `strict_combinations` a later promotion is only taken if
    every promotion applied before it lists its id in `combines_with`.
    """
    lookup = usage_lookup or _no_usage

    total_discount = 0.0
    applied: List[AppliedPromotion] = []
    gifts = []
    accepted: List[Promotion] = []
    processed = set()

    for promo in promotions:
        if promo.id in processed:
            continue

        if _limit_reached(promo, customer, lookup):
            logger.debug("promotion %s skipped: usage limit reached", promo.id)
            continue

        if strict_combinations and any(promo.id not in a.combines_with for a in accepted):
            logger.debug("promotion %s skipped: not combinable with %s", promo.id, [a.id for a in accepted])
            continue

        if not matches(promo.conditions, cart):
            continue

        result = price(promo, cart)
        if result.discount <= 0 and result.gift_product is None:
            continue

        total_discount += result.discount
        applied.append(
            AppliedPromotion(
                id=promo.id,
                name=promo.name,
                type=promo.type,
                discount=result.discount,
                details=result.details,
            )
        )
        processed.add(promo.id)
        accepted.append(promo)
        if result.gift_product is not None:
            gifts.append(result.gift_product)

        logger.debug("promotion %s applied: -%.2f", promo.id, result.discount)

        if not promo.combinable:
            break

    subtotal = cart.subtotal
    if total_discount > subtotal:
        total_discount = subtotal

    return PricingResult(
        subtotal=subtotal,
        total_discount=total_discount,
        applied_promotions=tuple(applied),
        gift_products=tuple(gifts),
        final_total=subtotal - total_discount,
    )
