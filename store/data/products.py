from dataclasses import dataclass
from typing import List, Tuple


SIZES: Tuple[str, ...] = ("S", "M", "L", "XL", "XXL")


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    slug: str
    category: str
    base_price: float
    launch_price: float | None = None
    colors: Tuple[str, ...] = ()
    sizes: Tuple[str, ...] = ()
    is_active: bool = True

    def price(self, launch_prices: bool = False) -> float:
        if launch_prices and self.launch_price:
            return self.launch_price
        return self.base_price


PRODUCTS: List[Product] = [
    Product(
        id="hoody",
        name="Hoody",
        slug="hoody",
        category="hoodies",
        base_price=49.00,
        launch_price=39.00,
        colors=("Military Green",),
        sizes=SIZES,
    ),
    Product(
        id="girocollo",
        name="Girocollo",
        slug="girocollo",
        category="crewnecks",
        base_price=44.00,
        launch_price=34.00,
        colors=("Blue Nesio", "Dark Heather", "Maroon", "Dark Chocolate"),
        sizes=SIZES,
    ),
    Product(
        id="sticker_pack",
        name="Sticker Pack",
        slug="sticker-pack",
        category="accessories",
        base_price=5.00,
    ),
]


def get_product(pid: str) -> Product | None:
    return next((p for p in PRODUCTS if p.id == pid), None)
