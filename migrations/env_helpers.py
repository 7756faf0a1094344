"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without an alembic context.
DATABASE_URL is shared with the app, which hands it to psycopg2 as-is; it may
be a URL or a libpq ``key=value`` DSN. SQLAlchemy needs a URL.
"""

from __future__ import annotations

import os
import shlex
from urllib.parse import quote_plus

_DRIVER_SCHEME = "postgresql+psycopg2://"


def dsn_to_url(dsn: str) -> str:
    """Convert a libpq key=value DSN (quoted values allowed) to a SQLAlchemy URL."""
    tokens: dict[str, str] = {}
    for part in shlex.split(dsn):
        key, sep, value = part.partition("=")
        if sep:
            tokens[key] = value

    user = quote_plus(tokens.get("user", ""))
    password = quote_plus(tokens.get("password", ""))
    credentials = f"{user}:{password}@" if password else (f"{user}@" if user else "")
    dbname = quote_plus(tokens.get("dbname", ""))
    host = tokens.get("host", "localhost")
    port = tokens.get("port", "5432")

    if host.startswith("/"):
        # Unix socket directory
        return f"{_DRIVER_SCHEME}{credentials}/{dbname}?host={quote_plus(host)}"
    return f"{_DRIVER_SCHEME}{credentials}{host}:{port}/{dbname}"


def normalize_url(url: str) -> str:
    """Force the psycopg2 driver on postgres:// and postgresql:// URLs."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return _DRIVER_SCHEME + url[len(prefix):]
    return url


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" in url:
        return normalize_url(url)
    return dsn_to_url(url)
