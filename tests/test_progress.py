import pytest

from store.promotions.model import Conditions, CumulativeTiers, PromotionType, Tier
from store.promotions.progress import progress, progress_dimensions

from helpers import make_cart, make_line, make_promo


def _tiered(*tiers):
    return make_promo(
        "bundle",
        type=PromotionType.TIERED,
        discount_tiers=tuple(Tier(threshold=t, discount=d, type=k) for t, d, k in tiers),
    )


class TestQuantityAndValue:
    def test_quantity_below_target(self, hoody):
        cart = make_cart(make_line(hoody, quantity=2))
        p = progress(cart, make_promo("three", conditions=Conditions(min_quantity=3)))
        assert p.kind == "quantity"
        assert p.percentage == pytest.approx(66.666, rel=1e-3)
        assert p.remaining == 1
        assert p.next_threshold == 3
        assert "1 more items" in p.message

    def test_quantity_reached(self, mixed_cart):
        p = progress(mixed_cart, make_promo("three", conditions=Conditions(min_quantity=3)))
        assert p.percentage == 100
        assert p.remaining == 0
        assert p.next_threshold is None

    def test_value_below_target(self, mixed_cart):
        p = progress(mixed_cart, make_promo("big", conditions=Conditions(min_cart_value=200)), currency="$")
        assert p.kind == "value"
        assert p.percentage == pytest.approx(55.0)
        assert p.remaining == pytest.approx(90.0)
        assert "$90.00" in p.message

    def test_no_thresholds(self, mixed_cart):
        p = progress(mixed_cart, make_promo("plain"))
        assert p.kind is None
        assert p.percentage == 0
        assert progress_dimensions(mixed_cart, make_promo("plain")) == []


class TestDimensions:
    def test_each_dimension_is_reported(self, mixed_cart):
        promo = make_promo("both", conditions=Conditions(min_quantity=6, min_cart_value=55))
        dims = progress_dimensions(mixed_cart, promo)
        assert [d.kind for d in dims] == ["quantity", "value"]
        assert dims[0].percentage == pytest.approx(50.0)
        assert dims[1].percentage == 100

    def test_single_progress_is_the_last_dimension(self, mixed_cart):
        promo = make_promo("both", conditions=Conditions(min_quantity=6, min_cart_value=55))
        assert progress(mixed_cart, promo).kind == "value"


class TestTiers:
    def test_between_tiers(self, hoody):
        cart = make_cart(make_line(hoody, quantity=4))
        p = progress(cart, _tiered((3, 10, "FIXED"), (6, 25, "PERCENTAGE")))
        assert p.kind == "tier"
        # baseline 3, next 6
        assert p.percentage == pytest.approx(100 / 3)
        assert p.remaining == 2
        assert p.next_threshold == 6
        assert p.message.endswith("-25%")

    def test_baseline_is_highest_reached_tier(self, hoody):
        cart = make_cart(make_line(hoody, quantity=5))
        p = progress(cart, _tiered((2, 5, "FIXED"), (4, 10, "FIXED"), (8, 20, "FIXED")))
        assert p.percentage == pytest.approx(25.0)

    def test_below_first_tier(self, hoody):
        cart = make_cart(make_line(hoody, quantity=1))
        p = progress(cart, _tiered((4, 10, "FIXED")))
        assert p.percentage == pytest.approx(25.0)
        assert p.message.endswith("-10€")

    def test_max_reached(self, hoody):
        cart = make_cart(make_line(hoody, quantity=9))
        p = progress(cart, _tiered((3, 10, "FIXED"), (6, 25, "FIXED")))
        assert p.percentage == 100
        assert "Maximum" in p.message

    def test_cumulative_tiers_have_no_tier_progress(self, hoody):
        cart = make_cart(make_line(hoody, quantity=1))
        promo = make_promo("cum", type=PromotionType.TIERED, discount_tiers=CumulativeTiers(per_unit=2, discount=5))
        assert progress_dimensions(cart, promo) == []
