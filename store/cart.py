from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Tuple

from store.data.products import Product, get_product


class CartError(Exception):
    pass


@dataclass(frozen=True)
class CartLine:
    product_id: str
    color: str | None
    size: str | None
    quantity: int
    unit_price: float
    product: Product

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Cart:
    """Priced snapshot of a cart. Read-only for the promotion engine."""

    lines: Tuple[CartLine, ...] = ()
    shipping_cost: float = 0.0

    @property
    def subtotal(self) -> float:
        return sum(line.line_total for line in self.lines)

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)


def build_cart(
    items: Iterable[Mapping],
    *,
    shipping_cost: float = 0.0,
    launch_prices: bool = False,
    lookup: Callable[[str], Optional[Product]] = get_product,
) -> Cart:
    """Resolve raw order items ({productId, color, size, quantity}) against the catalog.

    Unit prices come from the catalog, never from the request.
    """
    lines = []
    for raw in items:
        pid = str(raw.get("productId") or raw.get("product_id") or "")
        product = lookup(pid)
        if product is None or not product.is_active:
            raise CartError(f"Unknown product: {pid or '—'}")

        try:
            quantity = int(raw.get("quantity", 1))
        except (TypeError, ValueError) as e:
            raise CartError(f"Invalid quantity for {pid}") from e
        if quantity <= 0:
            raise CartError(f"Invalid quantity for {pid}")

        color = raw.get("color")
        size = raw.get("size")
        if color is not None and product.colors and color not in product.colors:
            raise CartError(f"Color {color!r} is not available for {product.name}")
        if size is not None and product.sizes and size not in product.sizes:
            raise CartError(f"Size {size!r} is not available for {product.name}")

        lines.append(
            CartLine(
                product_id=product.id,
                color=color,
                size=size,
                quantity=quantity,
                unit_price=product.price(launch_prices),
                product=product,
            )
        )

    return Cart(lines=tuple(lines), shipping_cost=float(shipping_cost or 0))
