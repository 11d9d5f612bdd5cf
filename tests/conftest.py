import pytest

from store.cart import Cart
from store.data.products import Product

from helpers import make_cart, make_line, make_product


@pytest.fixture
def hoody() -> Product:
    return make_product("hoody", 40.0, "hoodies", "Hoody")


@pytest.fixture
def crewneck() -> Product:
    return make_product("girocollo", 30.0, "crewnecks", "Girocollo")


@pytest.fixture
def stickers() -> Product:
    return make_product("sticker_pack", 5.0, "accessories", "Sticker Pack")


@pytest.fixture
def cart_100(hoody) -> Cart:
    """Single line, subtotal 100.00."""
    return make_cart(make_line(hoody, quantity=1, unit_price=100.0))


@pytest.fixture
def mixed_cart(hoody, crewneck) -> Cart:
    """2 hoodies (size M) + 1 crewneck (size L): 3 items, subtotal 110."""
    return make_cart(
        make_line(hoody, quantity=2, size="M", color="Green"),
        make_line(crewneck, quantity=1, size="L", color="Maroon"),
        shipping_cost=6.9,
    )
