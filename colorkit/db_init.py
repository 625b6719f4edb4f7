from __future__ import annotations

from sqlalchemy import text as sql_text

from colorkit.db import get_engine


SETTINGS_TABLE = "settings"


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {SETTINGS_TABLE} (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
                """
            )
        )
