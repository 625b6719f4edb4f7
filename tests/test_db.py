import logging

import pytest

from colorkit.db import is_sqlite, normalize_database_url
from colorkit.logging_config import configure_logging


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("sqlite:///./colorkit.db", "sqlite+aiosqlite:///./colorkit.db"),
        ("sqlite+aiosqlite:///./colorkit.db", "sqlite+aiosqlite:///./colorkit.db"),
        ("postgres://u:p@db.example.com/colorkit", "postgresql+asyncpg://u:p@db.example.com/colorkit"),
        (
            "postgresql://u:p@db.example.com/colorkit?sslmode=require&channel_binding=require",
            "postgresql+asyncpg://u:p@db.example.com/colorkit?ssl=true",
        ),
        ("postgresql+psycopg2://u@localhost/colorkit", "postgresql+asyncpg://u@localhost/colorkit"),
        ("", ""),
    ],
)
def test_normalize_database_url(raw, expected):
    assert normalize_database_url(raw) == expected


def test_is_sqlite():
    assert is_sqlite("sqlite+aiosqlite:///x.db")
    assert not is_sqlite("postgresql+asyncpg://u@h/db")


def test_configure_logging_quiets_http_loggers(monkeypatch):
    monkeypatch.setenv("COLORKIT_LOG_LEVEL", "debug")
    assert configure_logging() == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.WARNING
    assert configure_logging("not-a-level") == logging.INFO
