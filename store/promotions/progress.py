from __future__ import annotations

from typing import List

from store.cart import Cart
from store.promotions.model import Progress, Promotion, PromotionType, Tier


def _target_progress(kind: str, current: float, target: float, promo: Promotion, remaining_text: str) -> Progress:
    if current < target:
        return Progress(
            kind=kind,
            percentage=(current / target) * 100,
            remaining=target - current,
            next_threshold=target,
            message=f"Add {remaining_text} to unlock {promo.name}",
        )
    return Progress(kind=kind, percentage=100.0, remaining=0, message=f"✓ {promo.name} is active!")


def _tier_progress(tiers: tuple[Tier, ...], current: int, currency: str) -> Progress:
    ordered = sorted(tiers, key=lambda t: t.threshold)
    next_tier = next((t for t in ordered if current < t.threshold), None)

    if next_tier is None:
        return Progress(kind="tier", percentage=100.0, remaining=0, message="✓ Maximum discount reached!")

    reached = [t.threshold for t in ordered if t.threshold <= current]
    baseline = reached[-1] if reached else 0
    remaining = next_tier.threshold - current
    unit = "%" if next_tier.type == "PERCENTAGE" else currency

    return Progress(
        kind="tier",
        percentage=((current - baseline) / (next_tier.threshold - baseline)) * 100,
        remaining=remaining,
        next_threshold=next_tier.threshold,
        message=f"Add {remaining} more items for -{next_tier.discount:g}{unit}",
    )


def progress_dimensions(cart: Cart, promotion: Promotion, *, currency: str = "€") -> List[Progress]:
    """Progress toward each threshold the promotion has (quantity, value, tier), in that order."""
    cond = promotion.conditions
    out: List[Progress] = []

    if cond.min_quantity:
        current = cart.total_items
        remaining = cond.min_quantity - current
        out.append(
            _target_progress("quantity", current, cond.min_quantity, promotion, f"{remaining} more items")
        )

    if cond.min_cart_value:
        current = cart.subtotal
        remaining = cond.min_cart_value - current
        out.append(
            _target_progress("value", current, cond.min_cart_value, promotion, f"{currency}{remaining:.2f}")
        )

    if promotion.type == PromotionType.TIERED and isinstance(promotion.discount_tiers, tuple):
        out.append(_tier_progress(promotion.discount_tiers, cart.total_items, currency))

    return out


def progress(cart: Cart, promotion: Promotion, *, currency: str = "€") -> Progress:
    """Single progress bar: the last dimension of progress_dimensions() wins."""
    dims = progress_dimensions(cart, promotion, currency=currency)
    if not dims:
        return Progress(kind=None)
    return dims[-1]
