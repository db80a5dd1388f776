from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..models.config_models import DatabaseConfig

"""PostgreSQL connection helpers.

接続情報の解決優先順位:
    1. `.env` で読み込まれた環境変数 (override=True で既存値を上書き)
    2. プロセス環境変数
         - DATABASE_URL / PGDSN があれば DSN 全体をそのまま使用
         - 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. config/import.yml の database セクション (不足分のフォールバック)
"""

logger = logging.getLogger(__name__)


def load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv. Missing file is not an error."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


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
def db_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 cursor on an autocommit connection.

    autocommit=True so that the explicit BEGIN / COMMIT / ROLLBACK issued by
    the commit service are the only transaction boundaries.
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    try:
        conn.autocommit = True
        cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()
    finally:
        conn.close()
