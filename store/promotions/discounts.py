from __future__ import annotations

import math
from typing import Callable, Dict

from store.cart import Cart
from store.promotions.model import (
    BogoConfig,
    CumulativeTiers,
    DiscountResult,
    DiscountTiers,
    Promotion,
    PromotionType,
)

NO_DISCOUNT = DiscountResult(discount=0.0)


def _percentage(promo: Promotion, cart: Cart) -> DiscountResult:
    value = promo.discount_value or 0.0
    return DiscountResult(
        discount=cart.subtotal * (value / 100),
        details={"type": "percentage", "value": value},
    )


def _fixed(promo: Promotion, cart: Cart) -> DiscountResult:
    value = promo.discount_value or 0.0
    return DiscountResult(
        discount=min(value, cart.subtotal),
        details={"type": "fixed", "value": value},
    )


def _price_fixed(promo: Promotion, cart: Cart) -> DiscountResult:
    # the customer pays exactly discount_value
    final_price = promo.discount_value or 0.0
    return DiscountResult(
        discount=max(0.0, cart.subtotal - final_price),
        details={"type": "price_fixed", "finalPrice": final_price},
    )


def _free_shipping(promo: Promotion, cart: Cart) -> DiscountResult:
    return DiscountResult(
        discount=cart.shipping_cost or 0.0,
        details={"type": "free_shipping"},
    )


def _free_gift(promo: Promotion, cart: Cart) -> DiscountResult:
    gift = promo.gift_product
    return DiscountResult(
        discount=0.0,
        details={"type": "free_gift", "giftName": gift.name if gift else None},
        gift_product=gift,
    )


def _cumulative(tiers: CumulativeTiers, cart: Cart) -> DiscountResult:
    if tiers.per_unit <= 0:
        return NO_DISCOUNT

    groups = cart.total_items // tiers.per_unit

    if tiers.type == "PERCENTAGE":
        pct = min(groups * tiers.discount, tiers.max_discount or 100)
        discount = cart.subtotal * (pct / 100)
    else:
        discount = min(groups * tiers.discount, tiers.max_discount or math.inf)

    return DiscountResult(
        discount=discount,
        details={
            "type": "cumulative",
            "groups": groups,
            "perUnit": tiers.per_unit,
            "discountPerGroup": tiers.discount,
        },
    )


def calculate_tiered(tiers: DiscountTiers | None, cart: Cart) -> DiscountResult:
    if tiers is None:
        return NO_DISCOUNT
    if isinstance(tiers, CumulativeTiers):
        return _cumulative(tiers, cart)

    # progressive: the highest threshold reached wins
    tier = next(
        (t for t in sorted(tiers, key=lambda t: t.threshold, reverse=True) if cart.total_items >= t.threshold),
        None,
    )
    if tier is None:
        return NO_DISCOUNT

    if tier.type == "PERCENTAGE":
        discount = cart.subtotal * (tier.discount / 100)
    else:
        discount = tier.discount

    return DiscountResult(
        discount=discount,
        details={
            "type": "tiered",
            "threshold": tier.threshold,
            "discountValue": tier.discount,
            "discountType": tier.type,
        },
    )


def calculate_bogo(config: BogoConfig | None, cart: Cart) -> DiscountResult:
    if config is None:
        return NO_DISCOUNT

    total_units = config.buy + config.get
    if total_units <= 0:
        return NO_DISCOUNT

    groups = cart.total_items // total_units
    if groups == 0:
        return NO_DISCOUNT

    # Units are ranked one by one, so a line with quantity 3 competes as three
    # items. Group k discounts the unit at position k * total_units + buy; each
    # line owns the positions [start, end) and the hits are counted per line.
    lines = sorted(
        (line for line in cart.lines if line.quantity > 0),
        key=lambda line: line.unit_price,
        reverse=not config.apply_on_cheapest,
    )

    total = 0.0
    discounted_items = []
    start = 0
    for line in lines:
        end = start + line.quantity
        first = max(0, -((config.buy - start) // total_units))
        last = min(groups - 1, (end - 1 - config.buy) // total_units)
        start = end
        hits = last - first + 1
        if hits <= 0:
            continue

        item_discount = line.unit_price * (config.discount_on_get / 100)
        total += item_discount * hits
        discounted_items.append(
            {
                "productName": line.product.name,
                "originalPrice": line.unit_price,
                "discount": item_discount,
                "quantity": hits,
            }
        )

    return DiscountResult(
        discount=total,
        details={
            "type": "bogo",
            "buy": config.buy,
            "get": config.get,
            "discountPercent": config.discount_on_get,
            "groups": groups,
            "discountedItems": discounted_items,
        },
    )


def _tiered(promo: Promotion, cart: Cart) -> DiscountResult:
    return calculate_tiered(promo.discount_tiers, cart)


def _bogo(promo: Promotion, cart: Cart) -> DiscountResult:
    return calculate_bogo(promo.bogo_config, cart)


HANDLERS: Dict[PromotionType, Callable[[Promotion, Cart], DiscountResult]] = {
    PromotionType.PERCENTAGE: _percentage,
    PromotionType.FIXED: _fixed,
    PromotionType.PRICE_FIXED: _price_fixed,
    PromotionType.TIERED: _tiered,
    PromotionType.BOGO: _bogo,
    PromotionType.FREE_SHIPPING: _free_shipping,
    PromotionType.FREE_GIFT: _free_gift,
}


def price(promotion: Promotion, cart: Cart) -> DiscountResult:
    handler = HANDLERS.get(promotion.type) if promotion.type is not None else None
    if handler is None:
        return NO_DISCOUNT

    result = handler(promotion, cart)
    # written as "not >= 0" so a NaN discount is also dropped
    if not result.discount >= 0:
        return DiscountResult(discount=0.0, details=result.details, gift_product=result.gift_product)
    return result
