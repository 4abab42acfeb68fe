from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url

# .env at the project root
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(value: str | None, default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUTHY


def _positive_int(value: str | None, default: int) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True)
class DatabaseSettings:
    url: URL
    connect_timeout: int
    statement_timeout_ms: int
    pool_pre_ping: bool
    echo: bool

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"


def build_database_url(environ: Mapping[str, str]) -> URL:
    """Resolve the store URL from DATABASE_URL or the DB_* parts."""
    raw_url = (environ.get("DATABASE_URL") or "").strip()
    if raw_url:
        return make_url(raw_url)

    port = (environ.get("DB_PORT") or "").strip()
    return URL.create(
        drivername=(environ.get("DB_DRIVER") or "postgresql+psycopg2").strip(),
        username=(environ.get("DB_USER") or "").strip() or None,
        password=environ.get("DB_PASSWORD") or None,
        host=(environ.get("DB_HOST") or "localhost").strip(),
        port=int(port) if port.isdigit() else None,
        database=(environ.get("DB_NAME") or "orderdesk").strip(),
    )


def load_database_settings(environ: Mapping[str, str] | None = None) -> DatabaseSettings:
    env = os.environ if environ is None else environ
    return DatabaseSettings(
        url=build_database_url(env),
        connect_timeout=_positive_int(env.get("DB_CONNECT_TIMEOUT"), 10),
        statement_timeout_ms=_positive_int(env.get("DB_STATEMENT_TIMEOUT_MS"), 30000),
        pool_pre_ping=_flag(env.get("DB_POOL_PRE_PING"), True),
        echo=_flag(env.get("DB_ECHO"), False),
    )


ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.strip().lower()
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_SETTINGS = load_database_settings()
DATABASE_URL = DATABASE_SETTINGS.url
DB_ECHO = DATABASE_SETTINGS.echo
