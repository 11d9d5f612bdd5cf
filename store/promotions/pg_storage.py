from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

import asyncpg

from store.promotions.model import Promotion, promotion_from_dict
from store.promotions.storage import normalize_email

_PROMOTION_COLUMNS = """
    id,
    name,
    slug,
    description,
    type,
    is_active,
    priority,
    conditions,
    discount_value,
    discount_tiers,
    bogo_config,
    gift_product_id,
    start_date,
    end_date,
    max_uses_total,
    max_uses_per_user,
    usage_count,
    combines_with,
    badge_text,
    badge_color,
    show_progress_bar,
    progress_bar_text
"""


class PgPromotionStorage:
    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def list_promotions(self) -> List[Promotion]:
        sql = f"""
        SELECT {_PROMOTION_COLUMNS}
        FROM promotions
        WHERE is_active
        ORDER BY priority DESC
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(sql)

        return [promotion_from_dict(dict(r)) for r in rows]

    async def get_promotion(self, promotion_id: str) -> Optional[Promotion]:
        sql = f"""
        SELECT {_PROMOTION_COLUMNS}
        FROM promotions
        WHERE id = $1
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(sql, promotion_id)

        return promotion_from_dict(dict(row)) if row else None

    async def count_usage(self, promotion_id: str, customer_email: str) -> int:
        sql = """
        SELECT COUNT(*)
        FROM promotion_usages
        WHERE promotion_id = $1 AND customer_email = $2
        """
        async with self.pool.acquire() as conn:
            count = await conn.fetchval(sql, promotion_id, normalize_email(customer_email))
        return int(count or 0)

    async def usage_counts(self, customer_email: str) -> Dict[str, int]:
        sql = """
        SELECT promotion_id, COUNT(*) AS uses
        FROM promotion_usages
        WHERE customer_email = $1
        GROUP BY promotion_id
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(sql, normalize_email(customer_email))

        return {str(r["promotion_id"]): int(r["uses"]) for r in rows}

    async def record_usage(self, promotion_id: str, order_id: str, customer_email: str, discount: float) -> bool:
        """Atomic increment-with-check; the usage row is only written if the counter moved."""
        bump = """
        UPDATE promotions
           SET usage_count = usage_count + 1
         WHERE id = $1
           AND (max_uses_total IS NULL OR max_uses_total = 0 OR usage_count < max_uses_total)
     RETURNING usage_count
        """
        log = """
        INSERT INTO promotion_usages (promotion_id, order_id, customer_email, discount_applied, created_at)
        VALUES ($1, $2, $3, $4, $5)
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(bump, promotion_id)
                if row is None:
                    return False
                await conn.execute(
                    log,
                    promotion_id,
                    order_id,
                    normalize_email(customer_email),
                    float(discount),
                    datetime.now(timezone.utc),
                )
        return True
