import json
from dataclasses import dataclass

import asyncpg


@dataclass(frozen=True)
class PgConfig:
    host: str
    port: int
    database: str
    user: str
    password: str
    sslmode: str = "disable"


def _ssl_arg(sslmode: str):
    return None if sslmode == "disable" else True


async def _init_connection(conn: asyncpg.Connection) -> None:
    # conditions / discount_tiers / bogo_config come back as dicts, not strings
    for typename in ("json", "jsonb"):
        await conn.set_type_codec(
            typename,
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )


async def create_pool(cfg: PgConfig, *, max_size: int = 10) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        host=cfg.host,
        port=cfg.port,
        database=cfg.database,
        user=cfg.user,
        password=cfg.password,
        ssl=_ssl_arg(cfg.sslmode),
        min_size=1,
        max_size=max_size,
        command_timeout=30,
        init=_init_connection,
    )
