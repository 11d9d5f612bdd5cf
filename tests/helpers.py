"""Builders for carts and promotions used across the test suite."""

from store.cart import Cart, CartLine
from store.data.products import Product
from store.promotions.model import Conditions, Promotion, PromotionType


def make_product(pid="hoody", price=40.0, category="hoodies", name=None) -> Product:
    return Product(id=pid, name=name or pid.title(), slug=pid, category=category, base_price=price)


def make_line(product: Product, quantity=1, size="M", color="Black", unit_price=None) -> CartLine:
    return CartLine(
        product_id=product.id,
        color=color,
        size=size,
        quantity=quantity,
        unit_price=product.base_price if unit_price is None else unit_price,
        product=product,
    )


def make_cart(*lines: CartLine, shipping_cost=0.0) -> Cart:
    return Cart(lines=tuple(lines), shipping_cost=shipping_cost)


def make_promo(pid="promo", type=PromotionType.PERCENTAGE, **kwargs) -> Promotion:
    kwargs.setdefault("name", pid.replace("-", " ").title())
    kwargs.setdefault("conditions", Conditions())
    return Promotion(id=pid, type=type, **kwargs)
