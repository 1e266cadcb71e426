"""Unit tests for history store selection at startup."""

from unittest.mock import AsyncMock, patch

import pytest

from stylechat.config import Settings
from stylechat.conversations.factory import create_history_store
from stylechat.conversations.file_store import FileHistoryStore
from stylechat.conversations.store import PostgresHistoryStore


@pytest.mark.asyncio
async def test_file_store_when_url_unset(tmp_path):
    store = await create_history_store(Settings())

    assert isinstance(store, FileHistoryStore)
    assert store.directory == tmp_path / "chat_history"
    assert store.directory.is_dir()


@pytest.mark.asyncio
async def test_postgres_store_when_reachable(monkeypatch):
    monkeypatch.setenv("HISTORY_DATABASE_URL", "postgresql://user@db:5432/chat")

    with patch.object(PostgresHistoryStore, "initialize", new=AsyncMock()) as initialize:
        store = await create_history_store(Settings())

    assert isinstance(store, PostgresHistoryStore)
    initialize.assert_awaited_once()


@pytest.mark.asyncio
async def test_falls_back_to_file_store_when_unreachable(monkeypatch):
    monkeypatch.setenv("HISTORY_DATABASE_URL", "postgresql://user@db:5432/chat")

    with patch.object(
        PostgresHistoryStore,
        "initialize",
        new=AsyncMock(side_effect=OSError("connection refused")),
    ), patch.object(PostgresHistoryStore, "close", new=AsyncMock()) as close:
        store = await create_history_store(Settings())

    assert isinstance(store, FileHistoryStore)
    close.assert_awaited_once()
