import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

from store.promotions.model import Promotion, promotion_from_dict

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class JsonPromotionStorage:
    """Promotions and their usage log kept in two JSON files.

    promotions file: a list of promotion records (camelCase, as exported by the admin).
    usage file: {"usages": [{promotionId, orderId, customerEmail, discountApplied, createdAt}]}
    """

    def __init__(self, promotions_path: str, usage_path: str):
        self.promotions_path = promotions_path
        self.usage_path = usage_path
        self._lock = asyncio.Lock()

    def _read_json(self, path: str, default):
        if not os.path.exists(path):
            return default
        with open(path, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError:
                logger.warning("corrupt JSON in %s, treating as empty", path)
                return default

    def _atomic_write_json(self, path: str, data) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        tmp = f"{path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)

    def _raw_promotions(self) -> List[dict]:
        data = self._read_json(self.promotions_path, [])
        if isinstance(data, dict):
            # also accept {id: record}
            data = [{"id": k, **v} for k, v in data.items() if isinstance(v, dict)]
        return [r for r in data if isinstance(r, dict)]

    def _usages(self) -> List[dict]:
        data = self._read_json(self.usage_path, {})
        usages = data.get("usages", []) if isinstance(data, dict) else []
        return [u for u in usages if isinstance(u, dict)]

    async def list_promotions(self) -> List[Promotion]:
        async with self._lock:
            rows = self._raw_promotions()

        promos = []
        for raw in rows:
            if not raw.get("id"):
                logger.warning("promotion without id skipped: %r", raw.get("name"))
                continue
            promos.append(promotion_from_dict(raw))
        return promos

    async def get_promotion(self, promotion_id: str) -> Optional[Promotion]:
        async with self._lock:
            rows = self._raw_promotions()

        raw = next((r for r in rows if str(r.get("id")) == promotion_id), None)
        return promotion_from_dict(raw) if raw else None

    async def count_usage(self, promotion_id: str, customer_email: str) -> int:
        email = normalize_email(customer_email)
        async with self._lock:
            usages = self._usages()
        return sum(
            1 for u in usages
            if u.get("promotionId") == promotion_id and normalize_email(str(u.get("customerEmail", ""))) == email
        )

    async def usage_counts(self, customer_email: str) -> Dict[str, int]:
        email = normalize_email(customer_email)
        async with self._lock:
            usages = self._usages()

        counts: Dict[str, int] = {}
        for u in usages:
            if normalize_email(str(u.get("customerEmail", ""))) != email:
                continue
            pid = str(u.get("promotionId"))
            counts[pid] = counts.get(pid, 0) + 1
        return counts

    async def record_usage(self, promotion_id: str, order_id: str, customer_email: str, discount: float) -> bool:
        """Bump usageCount and log the usage. False if maxUsesTotal is already reached."""
        async with self._lock:
            rows = self._raw_promotions()
            raw = next((r for r in rows if str(r.get("id")) == promotion_id), None)
            if raw is None:
                return False

            # same key handling and number parsing as list_promotions
            promo = promotion_from_dict(raw)
            if promo.max_uses_total and promo.usage_count >= promo.max_uses_total:
                return False

            # keep the record's own key style
            key = "usage_count" if "usage_count" in raw and "usageCount" not in raw else "usageCount"
            raw[key] = promo.usage_count + 1
            self._atomic_write_json(self.promotions_path, rows)

            usage = self._read_json(self.usage_path, {})
            if not isinstance(usage, dict):
                usage = {}
            usage.setdefault("usages", []).append(
                {
                    "promotionId": promotion_id,
                    "orderId": order_id,
                    "customerEmail": normalize_email(customer_email),
                    "discountApplied": discount,
                    "createdAt": datetime.now(timezone.utc).isoformat(),
                }
            )
            self._atomic_write_json(self.usage_path, usage)
            return True
