from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..models.config_models import DatabaseConfig

"""psycopg2 connection handling.

Connection parameters are resolved in this order:
    1. DATABASE_URL / PGDSN environment variables (full DSN; .env is loaded first
       by the CLI with override=True)
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the ``database`` section of config/import.yml
"""

__all__ = [
    "resolve_dsn",
    "db_connection",
]

logger = logging.getLogger(__name__)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(db_cfg: DatabaseConfig, *, statement_timeout_ms: int | None = None) -> Iterator[Any]:
    """Yield a psycopg2 connection with autocommit off.

    The stores commit after every statement, so nothing is left pending when the
    block exits; the connection is always closed.
    """
    options = f"-c statement_timeout={int(statement_timeout_ms)}" if statement_timeout_ms else None
    conn = psycopg2.connect(resolve_dsn(db_cfg), options=options)
    logger.debug("connected to database (statement_timeout_ms=%s)", statement_timeout_ms)
    try:
        conn.autocommit = False
        yield conn
    finally:
        conn.close()
