from store.promotions.conditions import matches
from store.promotions.model import Attributes, Conditions

from helpers import make_cart, make_line


class TestBounds:
    def test_missing_conditions_match_everything(self, mixed_cart):
        assert matches(None, mixed_cart)
        assert matches(Conditions(), mixed_cart)

    def test_min_quantity_not_reached(self, hoody):
        cart = make_cart(make_line(hoody, quantity=2))
        assert not matches(Conditions(min_quantity=3), cart)

    def test_quantity_bounds_are_inclusive(self, mixed_cart):
        assert matches(Conditions(min_quantity=3, max_quantity=3), mixed_cart)
        assert not matches(Conditions(max_quantity=2), mixed_cart)

    def test_cart_value_bounds_are_inclusive(self, mixed_cart):
        assert matches(Conditions(min_cart_value=110, max_cart_value=110), mixed_cart)
        assert not matches(Conditions(min_cart_value=110.01), mixed_cart)
        assert not matches(Conditions(max_cart_value=109.99), mixed_cart)

    def test_zero_bounds_mean_no_constraint(self, mixed_cart):
        assert matches(Conditions(min_quantity=0, max_quantity=0, max_cart_value=0), mixed_cart)


class TestCatalogMatching:
    def test_any_category_is_enough(self, mixed_cart):
        assert matches(Conditions(categories=("accessories", "crewnecks")), mixed_cart)
        assert not matches(Conditions(categories=("accessories",)), mixed_cart)

    def test_any_product_by_default(self, mixed_cart):
        assert matches(Conditions(products=("hoody", "sticker_pack")), mixed_cart)
        assert not matches(Conditions(products=("sticker_pack",)), mixed_cart)

    def test_must_contain_all_products(self, mixed_cart):
        all_of = Attributes(must_contain_all=True)
        assert matches(Conditions(products=("hoody", "girocollo"), attributes=all_of), mixed_cart)
        assert not matches(Conditions(products=("hoody", "sticker_pack"), attributes=all_of), mixed_cart)


class TestSameAttributes:
    def test_same_size(self, hoody, crewneck, mixed_cart):
        same = Conditions(attributes=Attributes(same_size=True))
        assert not matches(same, mixed_cart)
        cart = make_cart(make_line(hoody, size="L"), make_line(crewneck, size="L"))
        assert matches(same, cart)

    def test_same_color(self, hoody, crewneck):
        same = Conditions(attributes=Attributes(same_color=True))
        assert matches(same, make_cart(make_line(hoody, color="Red"), make_line(crewneck, color="Red")))
        assert not matches(same, make_cart(make_line(hoody, color="Red"), make_line(crewneck, color="Blue")))

    def test_same_product(self, hoody, crewneck):
        same = Conditions(attributes=Attributes(same_product=True))
        assert matches(same, make_cart(make_line(hoody, size="S"), make_line(hoody, size="XL")))
        assert not matches(same, make_cart(make_line(hoody), make_line(crewneck)))

    def test_all_present_constraints_must_hold(self, mixed_cart):
        cond = Conditions(min_quantity=3, categories=("hoodies",), attributes=Attributes(same_size=True))
        assert not matches(cond, mixed_cart)
