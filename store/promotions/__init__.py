import logging

import asyncpg

from store.config import CURRENCY_SYMBOL, DATA_DIR, STRICT_PROMO_COMBINATIONS
from store.promotions.service import PromotionService
from store.promotions.storage import JsonPromotionStorage

logger = logging.getLogger(__name__)

# JSON storage for test mode and as a read fallback
json_storage = JsonPromotionStorage(
    promotions_path=str(DATA_DIR / "promotions.json"),
    usage_path=str(DATA_DIR / "promotion_usage.json"),
)

_pg_pool = None


def set_pg_pool(pool) -> None:
    global _pg_pool
    _pg_pool = pool


class PromotionStorageProxy:
    def __init__(self, fallback: JsonPromotionStorage = json_storage):
        self._pg_storage = None
        self._fallback = fallback

    def _pg(self):
        # lazy so that test mode never touches PG code
        if self._pg_storage is None and _pg_pool is not None:
            from store.promotions.pg_storage import PgPromotionStorage
            self._pg_storage = PgPromotionStorage(_pg_pool)
        return self._pg_storage

    async def list_promotions(self):
        pg = self._pg()
        if pg:
            return await pg.list_promotions()
        return await self._fallback.list_promotions()

    async def usage_counts(self, customer_email):
        pg = self._pg()
        if pg:
            try:
                return await pg.usage_counts(customer_email)
            except (asyncpg.PostgresError, OSError) as e:
                logger.warning("usage lookup failed in PG, using JSON log: %s", e)
        return await self._fallback.usage_counts(customer_email)

    async def record_usage(self, promotion_id, order_id, customer_email, discount):
        pg = self._pg()
        if pg:
            return await pg.record_usage(promotion_id, order_id, customer_email, discount)
        return await self._fallback.record_usage(promotion_id, order_id, customer_email, discount)


promotion_service = PromotionService(
    PromotionStorageProxy(),
    strict_combinations=STRICT_PROMO_COMBINATIONS,
    currency=CURRENCY_SYMBOL,
)
