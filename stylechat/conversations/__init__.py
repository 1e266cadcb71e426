"""Conversation history persistence (durable and file fallback)."""

from .base import HistoryStore
from .factory import create_history_store
from .file_store import FileHistoryStore
from .store import PostgresHistoryStore

__all__ = [
    "FileHistoryStore",
    "HistoryStore",
    "PostgresHistoryStore",
    "create_history_store",
]
