from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from colorkit.settings import get_settings

logger = logging.getLogger(__name__)

_DRIVER_PREFIXES = {
    "sqlite://": "sqlite+aiosqlite://",
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "postgresql+psycopg2://": "postgresql+asyncpg://",
}
_LOCAL_HOSTS = {"", "localhost", "127.0.0.1"}


def _with_async_driver(url: str) -> str:
    for prefix, replacement in _DRIVER_PREFIXES.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def _asyncpg_query(url: str) -> str:
    # asyncpg takes ssl=true instead of libpq's sslmode/channel_binding.
    parsed = urlparse(url)
    params = parse_qsl(parsed.query, keep_blank_values=True)
    wants_ssl = any(key == "sslmode" for key, _ in params)
    kept = [(key, value) for key, value in params if key not in {"sslmode", "channel_binding", "ssl"}]
    if wants_ssl:
        kept.append(("ssl", "true"))
    return urlunparse(parsed._replace(query=urlencode(kept)))


def normalize_database_url(database_url: str) -> str:
    url = _with_async_driver(str(database_url or "").strip())
    if not url or url.startswith("sqlite"):
        return url
    try:
        return _asyncpg_query(url)
    except ValueError:
        logger.debug("Could not rewrite query string of database URL.")
        return url


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _build_engine(db_url: str) -> AsyncEngine:
    if is_sqlite(db_url):
        # aiosqlite connections belong to the loop that opened them.
        return create_async_engine(db_url, poolclass=NullPool, future=True)
    kwargs = {"pool_pre_ping": True, "future": True, "pool_size": 10, "max_overflow": 5}
    if (urlparse(db_url).hostname or "") not in _LOCAL_HOSTS:
        kwargs["connect_args"] = {"ssl": True}
    return create_async_engine(db_url, **kwargs)


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        db_url = normalize_database_url(get_settings().database_url)
        logger.info("Opening settings store (%s)", "sqlite" if is_sqlite(db_url) else "postgresql")
        _engine = _build_engine(db_url)
    return _engine


def get_sessionmaker() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def reset_engine() -> None:
    global _engine, _session_factory
    _engine = None
    _session_factory = None
