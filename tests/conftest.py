"""
Pytest configuration and shared fixtures for ColorKit tests
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from colorkit import db, repositories
from colorkit import settings as app_settings
from colorkit.db_init import init_db

SECRET = "test-backend-secret"
USER = "jane@example.com"


@pytest.fixture(autouse=True)
def isolated_store(tmp_path, monkeypatch):
    """Point every test at its own SQLite file and clear module caches."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'colorkit.db'}")
    monkeypatch.setenv("BACKEND_SESSION_SECRET", SECRET)
    monkeypatch.delenv("ALLOWED_EMAILS", raising=False)
    monkeypatch.delenv("NEUTRAL_DAY_COLOR", raising=False)
    app_settings.reset_settings_cache()
    db.reset_engine()
    repositories._LAST_KNOWN.clear()
    repositories._LISTENERS.clear()
    asyncio.run(init_db())
    yield
    repositories._LISTENERS.clear()
    app_settings.reset_settings_cache()
    db.reset_engine()


@pytest.fixture
def run():
    """Run a coroutine to completion on a fresh event loop"""
    return asyncio.run


@pytest.fixture
def api():
    """Authenticated test client for the full app"""
    from colorkit.main import create_app

    with TestClient(create_app()) as test_client:
        test_client.headers.update({"X-Backend-Token": SECRET, "X-User-Email": USER})
        yield test_client
