from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from store.data.products import Product, get_product


class PromotionType(str, Enum):
    PERCENTAGE = "PERCENTAGE"        # -N% on the subtotal
    FIXED = "FIXED"                  # -N on the subtotal
    PRICE_FIXED = "PRICE_FIXED"      # pay exactly N
    TIERED = "TIERED"
    BOGO = "BOGO"
    FREE_SHIPPING = "FREE_SHIPPING"
    FREE_GIFT = "FREE_GIFT"


@dataclass(frozen=True)
class Attributes:
    must_contain_all: bool = False
    same_size: bool = False
    same_color: bool = False
    same_product: bool = False


@dataclass(frozen=True)
class Conditions:
    min_quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    min_cart_value: Optional[float] = None
    max_cart_value: Optional[float] = None
    categories: Tuple[str, ...] = ()
    products: Tuple[str, ...] = ()
    attributes: Optional[Attributes] = None


@dataclass(frozen=True)
class Tier:
    threshold: int
    discount: float
    type: str = "FIXED"  # PERCENTAGE | FIXED


@dataclass(frozen=True)
class CumulativeTiers:
    """Every `per_unit` items add `discount` (percent or flat), capped by `max_discount`."""

    per_unit: int
    discount: float
    type: str = "FIXED"
    max_discount: Optional[float] = None


DiscountTiers = Union[CumulativeTiers, Tuple[Tier, ...]]


@dataclass(frozen=True)
class BogoConfig:
    buy: int
    get: int
    discount_on_get: float = 100.0
    apply_on_cheapest: bool = True


@dataclass(frozen=True)
class Promotion:
    id: str
    name: str
    type: Optional[PromotionType]  # None when the stored type is unknown
    is_active: bool = True
    priority: int = 0
    conditions: Conditions = field(default_factory=Conditions)
    discount_value: Optional[float] = None
    discount_tiers: Optional[DiscountTiers] = None
    bogo_config: Optional[BogoConfig] = None
    gift_product: Optional[Product] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_uses_total: Optional[int] = None
    max_uses_per_user: Optional[int] = None
    usage_count: int = 0
    combines_with: Tuple[str, ...] = ()
    slug: Optional[str] = None
    description: Optional[str] = None
    badge_text: Optional[str] = None
    badge_color: Optional[str] = None
    show_progress_bar: bool = False
    progress_bar_text: Optional[str] = None

    @property
    def combinable(self) -> bool:
        return len(self.combines_with) > 0


@dataclass(frozen=True)
class DiscountResult:
    discount: float
    details: Mapping[str, Any] = field(default_factory=dict)
    gift_product: Optional[Product] = None


@dataclass(frozen=True)
class AppliedPromotion:
    id: str
    name: str
    type: PromotionType
    discount: float
    details: Mapping[str, Any]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "discount": self.discount,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class PricingResult:
    subtotal: float
    total_discount: float
    applied_promotions: Tuple[AppliedPromotion, ...]
    gift_products: Tuple[Product, ...]
    final_total: float

    def to_dict(self) -> dict:
        return {
            "totalDiscount": self.total_discount,
            "appliedPromotions": [p.to_dict() for p in self.applied_promotions],
            "giftProducts": [{"id": g.id, "name": g.name} for g in self.gift_products],
            "finalTotal": self.final_total,
        }


@dataclass(frozen=True)
class Progress:
    kind: Optional[str]  # "quantity" | "value" | "tier"; None when nothing to track
    percentage: float = 0.0
    remaining: float = 0.0
    next_threshold: Optional[float] = None
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "percentage": self.percentage,
            "remaining": self.remaining,
            "nextThreshold": self.next_threshold,
            "message": self.message,
        }


# ---------------------------------------------------------------------------
# Parsing of stored records (JSON files use camelCase, PG rows snake_case).
# Everything here is permissive: bad optional data becomes "absent".
# ---------------------------------------------------------------------------


def _pick(raw: Mapping, *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return default


def _num(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    # "NaN" and "inf" parse as floats but poison every later comparison
    return n if math.isfinite(n) else None


def _int(value: Any) -> Optional[int]:
    n = _num(value)
    if n is None:
        return None
    return int(n)


def _strs(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value)


def _parse_dt(value: Any) -> Optional[datetime]:
    if value in (None, "", 0):
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_conditions(raw: Any) -> Conditions:
    if not isinstance(raw, Mapping):
        return Conditions()

    attrs_raw = raw.get("attributes")
    attributes = None
    if isinstance(attrs_raw, Mapping):
        attributes = Attributes(
            must_contain_all=bool(_pick(attrs_raw, "mustContainAll", "must_contain_all", default=False)),
            # sameTaglia: legacy key from the first promotions admin
            same_size=bool(_pick(attrs_raw, "sameSize", "same_size", "sameTaglia", default=False)),
            same_color=bool(_pick(attrs_raw, "sameColor", "same_color", default=False)),
            same_product=bool(_pick(attrs_raw, "sameProduct", "same_product", default=False)),
        )

    return Conditions(
        min_quantity=_int(_pick(raw, "minQuantity", "min_quantity")),
        max_quantity=_int(_pick(raw, "maxQuantity", "max_quantity")),
        min_cart_value=_num(_pick(raw, "minCartValue", "min_cart_value")),
        max_cart_value=_num(_pick(raw, "maxCartValue", "max_cart_value")),
        categories=_strs(raw.get("categories")),
        products=_strs(raw.get("products")),
        attributes=attributes,
    )


def parse_tiers(raw: Any) -> Optional[DiscountTiers]:
    if isinstance(raw, Mapping):
        if raw.get("mode") != "cumulative":
            return None
        per_unit = _int(_pick(raw, "perUnit", "per_unit"))
        discount = _num(raw.get("discount"))
        if per_unit is None or discount is None:
            return None
        return CumulativeTiers(
            per_unit=per_unit,
            discount=discount,
            type=str(raw.get("type") or "FIXED").upper(),
            max_discount=_num(_pick(raw, "maxDiscount", "max_discount")),
        )

    if isinstance(raw, (list, tuple)):
        tiers = []
        for t in raw:
            if not isinstance(t, Mapping):
                continue
            threshold = _int(t.get("threshold"))
            discount = _num(t.get("discount"))
            if threshold is None or discount is None:
                continue
            tiers.append(Tier(threshold=threshold, discount=discount, type=str(t.get("type") or "FIXED").upper()))
        return tuple(tiers) if tiers else None

    return None


def parse_bogo(raw: Any) -> Optional[BogoConfig]:
    if not isinstance(raw, Mapping):
        return None
    buy = _int(raw.get("buy"))
    get = _int(raw.get("get"))
    if buy is None or get is None or buy < 0 or get <= 0:
        return None
    discount_on_get = _num(_pick(raw, "discountOnGet", "discount_on_get"))
    return BogoConfig(
        buy=buy,
        get=get,
        discount_on_get=100.0 if discount_on_get is None else discount_on_get,
        apply_on_cheapest=bool(_pick(raw, "applyOnCheapest", "apply_on_cheapest", default=True)),
    )


def _parse_gift(raw: Mapping, lookup: Callable[[str], Optional[Product]]) -> Optional[Product]:
    gift = _pick(raw, "giftProduct", "gift_product")
    if isinstance(gift, Product):
        return gift
    if isinstance(gift, Mapping) and gift.get("id"):
        return lookup(str(gift["id"])) or Product(
            id=str(gift["id"]),
            name=str(gift.get("name") or gift["id"]),
            slug=str(gift.get("slug") or gift["id"]),
            category=str(gift.get("category") or ""),
            base_price=_num(_pick(gift, "basePrice", "base_price")) or 0.0,
        )
    gift_id = _pick(raw, "giftProductId", "gift_product_id")
    if gift_id:
        return lookup(str(gift_id))
    return None


def _parse_type(value: Any) -> Optional[PromotionType]:
    try:
        return PromotionType(str(value).upper())
    except ValueError:
        return None


def promotion_from_dict(
    raw: Mapping,
    *,
    lookup: Callable[[str], Optional[Product]] = get_product,
) -> Promotion:
    return Promotion(
        id=str(raw["id"]),
        name=str(raw.get("name") or raw["id"]),
        type=_parse_type(raw.get("type")),
        is_active=bool(_pick(raw, "isActive", "is_active", default=True)),
        priority=_int(raw.get("priority")) or 0,
        conditions=parse_conditions(raw.get("conditions")),
        discount_value=_num(_pick(raw, "discountValue", "discount_value")),
        discount_tiers=parse_tiers(_pick(raw, "discountTiers", "discount_tiers")),
        bogo_config=parse_bogo(_pick(raw, "bogoConfig", "bogo_config")),
        gift_product=_parse_gift(raw, lookup),
        start_date=_parse_dt(_pick(raw, "startDate", "start_date")),
        end_date=_parse_dt(_pick(raw, "endDate", "end_date")),
        max_uses_total=_int(_pick(raw, "maxUsesTotal", "max_uses_total")),
        max_uses_per_user=_int(_pick(raw, "maxUsesPerUser", "max_uses_per_user")),
        usage_count=_int(_pick(raw, "usageCount", "usage_count")) or 0,
        combines_with=_strs(_pick(raw, "combinesWith", "combines_with")),
        slug=_pick(raw, "slug"),
        description=_pick(raw, "description"),
        badge_text=_pick(raw, "badgeText", "badge_text"),
        badge_color=_pick(raw, "badgeColor", "badge_color"),
        show_progress_bar=bool(_pick(raw, "showProgressBar", "show_progress_bar", default=False)),
        progress_bar_text=_pick(raw, "progressBarText", "progress_bar_text"),
    )
