from __future__ import annotations

from typing import Optional

from store.cart import Cart
from store.promotions.model import Conditions


def _distinct(values) -> int:
    return len(set(values))


def matches(conditions: Optional[Conditions], cart: Cart) -> bool:
    """True when every constraint present in `conditions` holds for the cart.

    Zero/empty values are treated as "no constraint", the same way the
    promotions admin stores unset fields.
    """
    if conditions is None:
        return True

    cond = conditions
    total_items = cart.total_items
    subtotal = cart.subtotal

    if cond.min_quantity and total_items < cond.min_quantity:
        return False
    if cond.max_quantity and total_items > cond.max_quantity:
        return False

    if cond.min_cart_value and subtotal < cond.min_cart_value:
        return False
    if cond.max_cart_value and subtotal > cond.max_cart_value:
        return False

    if cond.categories:
        cart_categories = {line.product.category for line in cart.lines}
        if not any(cat in cart_categories for cat in cond.categories):
            return False

    attrs = cond.attributes

    if cond.products:
        cart_product_ids = {line.product_id for line in cart.lines}
        if attrs is not None and attrs.must_contain_all:
            if not all(pid in cart_product_ids for pid in cond.products):
                return False
        elif not any(pid in cart_product_ids for pid in cond.products):
            return False

    if attrs is not None:
        if attrs.same_size and _distinct(line.size for line in cart.lines) > 1:
            return False
        if attrs.same_color and _distinct(line.color for line in cart.lines) > 1:
            return False
        if attrs.same_product and _distinct(line.product_id for line in cart.lines) > 1:
            return False

    return True
