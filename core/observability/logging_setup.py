"""Logging setup.

Every module logs through ``logging.getLogger(__name__)``; this configures
the root logger once at program start.
"""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger.

    Unknown level names fall back to INFO. SQLAlchemy's engine logger is
    kept at WARNING so statements only appear when ``echo`` is enabled.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT, force=True)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
