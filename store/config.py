from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from store.db.pool import PgConfig

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _str_to_bool(v: str | None, default: bool = False) -> bool:
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, *, required: bool = False, default: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        if required:
            raise RuntimeError(f"{name} is not set")
        return default
    try:
        return int(raw)
    except Exception as e:
        if required:
            raise RuntimeError(f"{name} must be an integer") from e
        return default


def _env_float(name: str, *, default: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be a number") from e


# === App mode ===
# - APP_ENV=prod  → PostgreSQL storage
# - APP_ENV=test  → JSON files under DATA_DIR
APP_ENV = (os.getenv("APP_ENV") or "prod").strip().lower()
IS_PROD = APP_ENV == "prod"
IS_TEST = not IS_PROD

DATA_DIR = Path(os.getenv("DATA_DIR") or BASE_DIR / "data")

LAUNCH_PRICES_ACTIVE = _str_to_bool(os.getenv("LAUNCH_PRICES_ACTIVE"), default=False)
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL") or "€"
DEFAULT_SHIPPING_COST = _env_float("DEFAULT_SHIPPING_COST", default=0.0)

# whitelist intersection on combinesWith instead of "any later promo may apply"
STRICT_PROMO_COMBINATIONS = _str_to_bool(os.getenv("STRICT_PROMO_COMBINATIONS"), default=False)

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def load_pg_config() -> PgConfig:
    host = os.getenv("PG_HOST")
    database = os.getenv("PG_DB")
    user = os.getenv("PG_USER")

    if not host:
        raise RuntimeError("PG_HOST is not set")
    if not database:
        raise RuntimeError("PG_DB is not set")
    if not user:
        raise RuntimeError("PG_USER is not set")

    return PgConfig(
        host=host,
        port=_env_int("PG_PORT", default=5432),
        database=database,
        user=user,
        password=os.getenv("PG_PASS") or "",
        sslmode=os.getenv("PG_SSLMODE", "disable"),
    )
