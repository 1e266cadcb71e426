"""Durable conversation history storage in PostgreSQL."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from typing import Any

import asyncpg

from stylechat.config import get_settings
from stylechat.conversations.base import HistoryStore
from stylechat.models.conversation import ConversationHistory
from stylechat.models.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

_CREATE_HISTORY_TABLE = """
CREATE TABLE IF NOT EXISTS chat_histories (
    user_id TEXT PRIMARY KEY,
    history JSONB NOT NULL,
    turn_count INTEGER NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);
"""

_CREATE_HISTORY_UPDATED_INDEX = """
CREATE INDEX IF NOT EXISTS chat_histories_updated_at_idx
ON chat_histories (updated_at DESC);
"""

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class PostgresHistoryStore(HistoryStore):
    """Persist one JSONB history document per user in the history database."""

    kind = "postgres"

    def __init__(
        self,
        database_url: str | None = None,
        *,
        min_size: int = 1,
        max_size: int = 5,
        connect_timeout: float = 5.0,
    ) -> None:
        if database_url is None:
            settings = get_settings()
            if settings.history_database.url:
                database_url = str(settings.history_database.url)
        self._database_url = database_url
        self._min_size = min_size
        self._max_size = max_size
        self._connect_timeout = connect_timeout
        self._pool: asyncpg.Pool | None = None

    async def initialize(self) -> None:
        if self._pool is None:
            if not self._database_url:
                raise ValueError("HISTORY_DATABASE_URL must be set for durable history storage.")
            dsn = self._normalize_postgres_url(self._database_url)
            self._pool = await asyncpg.create_pool(
                dsn=dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                timeout=self._connect_timeout,
            )
        await self._pool.execute(_CREATE_HISTORY_TABLE)
        await self._pool.execute(_CREATE_HISTORY_UPDATED_INDEX)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def ping(self) -> bool:
        if self._pool is None:
            return False
        try:
            await self._pool.execute("SELECT 1")
        except _STORE_ERRORS:
            return False
        return True

    async def _read(self, user_id: str) -> ConversationHistory | None:
        pool = self._ensure_pool()
        try:
            row = await pool.fetchrow(
                """
                SELECT user_id, history, updated_at
                FROM chat_histories
                WHERE user_id = $1
                """,
                user_id,
            )
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(self.kind, f"Failed to load history: {exc}") from exc
        if row is None:
            return None
        try:
            return self._row_to_history(row)
        except ValueError as exc:
            await self._release_malformed_row(pool, user_id)
            raise StoreUnavailableError(
                self.kind, f"Stored history for {user_id!r} is malformed: {exc}"
            ) from exc

    async def _write(self, history: ConversationHistory) -> bool:
        pool = self._ensure_pool()
        now = datetime.now(UTC)
        record = history.to_record()
        try:
            row = await pool.fetchrow(
                """
                INSERT INTO chat_histories (
                    user_id,
                    history,
                    turn_count,
                    created_at,
                    updated_at
                ) VALUES (
                    $1, $2::jsonb, $3, $4, $5
                )
                ON CONFLICT (user_id) DO UPDATE SET
                    history = EXCLUDED.history,
                    turn_count = EXCLUDED.turn_count,
                    updated_at = EXCLUDED.updated_at
                WHERE EXCLUDED.turn_count >= chat_histories.turn_count
                RETURNING user_id, updated_at
                """,
                history.user_id,
                json.dumps(record["history"]),
                history.turn_count,
                now,
                now,
            )
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(self.kind, f"Failed to save history: {exc}") from exc
        if row is None:
            logger.warning(
                "Skipped stale history snapshot; a longer transcript is already stored",
                extra={"user_id": history.user_id, "turn_count": history.turn_count},
            )
            return False
        return True

    async def _release_malformed_row(self, pool: asyncpg.Pool, user_id: str) -> None:
        """Zero the stored turn count so the next save replaces an unreadable row."""
        try:
            await pool.execute(
                "UPDATE chat_histories SET turn_count = 0 WHERE user_id = $1",
                user_id,
            )
        except _STORE_ERRORS as exc:
            logger.warning(
                f"Failed to release malformed history row: {exc}", extra={"user_id": user_id}
            )

    def _ensure_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise StoreUnavailableError(self.kind, "PostgresHistoryStore not initialized")
        return self._pool

    @staticmethod
    def _normalize_postgres_url(url: str) -> str:
        if url.startswith("postgresql+asyncpg://"):
            return "postgresql://" + url[len("postgresql+asyncpg://") :]
        return url

    @staticmethod
    def _decode_json_field(value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return None
        return value

    @classmethod
    def _row_to_history(cls, row: asyncpg.Record) -> ConversationHistory:
        turns = cls._decode_json_field(row["history"])
        if not isinstance(turns, list):
            raise ValueError("history column does not hold a JSON array")
        return ConversationHistory.from_record(
            {
                "userId": str(row["user_id"]),
                "history": turns,
                "updatedAt": row["updated_at"],
            }
        )
