"""Startup selection between the durable and fallback history stores."""

from __future__ import annotations

import logging

from stylechat.config import Settings, get_settings
from stylechat.conversations.base import HistoryStore
from stylechat.conversations.file_store import FileHistoryStore
from stylechat.conversations.store import PostgresHistoryStore

logger = logging.getLogger(__name__)


async def create_history_store(settings: Settings | None = None) -> HistoryStore:
    """
    Pick the history store once, at process start.

    Uses PostgreSQL when HISTORY_DATABASE_URL is set and reachable, otherwise
    the per-user JSON file store.
    """
    settings = settings or get_settings()
    db_settings = settings.history_database

    if db_settings.url:
        store = PostgresHistoryStore(
            str(db_settings.url),
            min_size=db_settings.pool_min_size,
            max_size=db_settings.pool_max_size,
            connect_timeout=db_settings.connect_timeout,
        )
        try:
            await store.initialize()
        except Exception as e:
            logger.warning(f"History database unavailable, falling back to file store: {e}")
            await store.close()
        else:
            logger.info("Using PostgreSQL history store")
            return store
    else:
        logger.warning("HISTORY_DATABASE_URL not set; using file history store.")

    fallback = FileHistoryStore(settings.history_file.dir)
    await fallback.initialize()
    return fallback
