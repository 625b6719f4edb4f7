import logging
import os

QUIET_LOGGERS = ("urllib3", "requests", "aiosqlite", "sqlalchemy.engine")


def configure_logging(level_name: str | None = None) -> int:
    """Console logging for processes outside the API (overlay workers, scripts)."""
    level_name = (level_name or os.getenv("COLORKIT_LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return level
