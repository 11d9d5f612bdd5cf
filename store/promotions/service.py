from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol

from store.cart import Cart
from store.promotions.engine import filter_active, select_and_price
from store.promotions.model import PricingResult, Progress, Promotion
from store.promotions.progress import progress_dimensions

logger = logging.getLogger(__name__)


class PromotionError(Exception):
    pass


class PromotionLimitReached(PromotionError):
    def __init__(self, promotion_ids: Iterable[str]):
        self.promotion_ids = list(promotion_ids)
        super().__init__(f"Usage limit reached for: {', '.join(self.promotion_ids)}")


class PromotionStorage(Protocol):
    async def list_promotions(self) -> List[Promotion]: ...

    async def usage_counts(self, customer_email: str) -> Dict[str, int]: ...

    async def record_usage(self, promotion_id: str, order_id: str, customer_email: str, discount: float) -> bool: ...


class PromotionService:
    def __init__(self, storage: PromotionStorage, *, strict_combinations: bool = False, currency: str = "€"):
        self.storage = storage
        self.strict_combinations = strict_combinations
        self.currency = currency

    async def active_promotions(self, now: Optional[datetime] = None) -> List[Promotion]:
        return filter_active(await self.storage.list_promotions(), now)

    async def price_cart(
        self,
        cart: Cart,
        customer_email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PricingResult:
        promos = await self.active_promotions(now)

        counts: Dict[str, int] = {}
        if customer_email and any(p.max_uses_per_user for p in promos):
            counts = await self.storage.usage_counts(customer_email)

        result = select_and_price(
            cart,
            customer_email,
            promos,
            lambda promotion_id, _customer: counts.get(promotion_id, 0),
            strict_combinations=self.strict_combinations,
        )

        if result.applied_promotions:
            logger.info(
                "cart priced: subtotal=%.2f discount=%.2f promotions=%s",
                result.subtotal,
                result.total_discount,
                [p.id for p in result.applied_promotions],
            )
        return result

    async def progress_bars(self, cart: Cart, now: Optional[datetime] = None) -> Dict[str, List[Progress]]:
        promos = await self.active_promotions(now)
        return {
            p.id: progress_dimensions(cart, p, currency=self.currency)
            for p in promos
            if p.show_progress_bar
        }

    async def redeem(self, result: PricingResult, customer_email: str, order_id: str) -> None:
        """Record usage of every applied promotion once the order exists.

        Raises PromotionLimitReached when a total limit was hit between
        pricing and commit; the promotions that did fit are still recorded.
        """
        rejected = []
        for applied in result.applied_promotions:
            ok = await self.storage.record_usage(applied.id, order_id, customer_email, applied.discount)
            if not ok:
                rejected.append(applied.id)

        if rejected:
            logger.warning("order %s: usage limit reached for %s", order_id, rejected)
            raise PromotionLimitReached(rejected)
