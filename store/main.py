import argparse
import asyncio
import json
import logging
import sys

from store.cart import CartError, build_cart
from store.config import (
    APP_ENV,
    DEFAULT_SHIPPING_COST,
    IS_PROD,
    LAUNCH_PRICES_ACTIVE,
    load_pg_config,
    setup_logging,
)
from store.db.pool import create_pool
from store.promotions import promotion_service, set_pg_pool

logger = logging.getLogger(__name__)


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Price a cart against the active promotions.")
    parser.add_argument("cart", help="JSON file: a list of {productId, color, size, quantity}")
    parser.add_argument("--email", default=None, help="customer e-mail for per-user limits")
    parser.add_argument("--shipping", type=float, default=DEFAULT_SHIPPING_COST)
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = _parse_args(argv)
    setup_logging()

    with open(args.cart, "r", encoding="utf-8") as f:
        items = json.load(f)

    try:
        cart = build_cart(items, shipping_cost=args.shipping, launch_prices=LAUNCH_PRICES_ACTIVE)
    except CartError as e:
        logger.error("invalid cart: %s", e)
        return 2

    pool = None
    # PostgreSQL only in PROD
    if IS_PROD:
        pool = await create_pool(load_pg_config(), max_size=2)
        set_pg_pool(pool)
    else:
        logger.info("APP_ENV=%s → DB disabled, using JSON storage", APP_ENV)

    try:
        result = await promotion_service.price_cart(cart, customer_email=args.email)
        bars = await promotion_service.progress_bars(cart)
    finally:
        if pool is not None:
            await pool.close()

    out = result.to_dict()
    out["subtotal"] = result.subtotal
    out["progress"] = {pid: [p.to_dict() for p in dims] for pid, dims in bars.items()}
    json.dump(out, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
