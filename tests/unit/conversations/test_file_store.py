"""Unit tests for the local-file history store."""

import json
import os

import pytest

from stylechat.conversations.file_store import FileHistoryStore
from stylechat.models.conversation import (
    ConversationHistory,
    ConversationTurn,
    MediaPart,
    TextPart,
)


def _history(user_id: str, *texts: str) -> ConversationHistory:
    turns = [ConversationTurn.user_text("persona")]
    for index, text in enumerate(texts):
        role = "user" if index % 2 == 0 else "model"
        turns.append(ConversationTurn(role=role, parts=(TextPart(text=text),)))
    return ConversationHistory(user_id=user_id, turns=turns)


@pytest.mark.asyncio
async def test_save_then_load_preserves_turns(tmp_path, png_bytes):
    store = FileHistoryStore(tmp_path)
    await store.initialize()
    history = _history("u1", "What goes with olive chinos?").appended(
        ConversationTurn.model_text("A cream knit.")
    )
    history = history.appended(
        ConversationTurn(
            role="user",
            parts=(TextPart(text="And this?"), MediaPart(mime_type="image/png", data=png_bytes)),
        )
    )

    assert await store.save(history) is True
    loaded = await store.load("u1")

    assert loaded is not None
    assert loaded.turns == history.turns
    assert loaded.updated_at is not None


@pytest.mark.asyncio
async def test_file_holds_persisted_record_shape(tmp_path):
    store = FileHistoryStore(tmp_path)
    await store.initialize()
    await store.save(_history("u1", "Hi", "Hello"))

    record = json.loads(store.path_for("u1").read_text(encoding="utf-8"))

    assert set(record) == {"userId", "history", "updatedAt"}
    assert record["userId"] == "u1"
    assert len(record["history"]) == 3


def test_path_is_hashed_per_user(tmp_path):
    store = FileHistoryStore(tmp_path)

    path = store.path_for("../../etc/passwd")

    assert path.parent == tmp_path
    assert path.suffix == ".json"
    assert store.path_for("a") != store.path_for("b")


@pytest.mark.asyncio
async def test_load_missing_user_returns_none(tmp_path):
    store = FileHistoryStore(tmp_path)
    await store.initialize()

    assert await store.load("nobody") is None


@pytest.mark.asyncio
async def test_corrupt_file_reads_as_absent_and_is_replaced(tmp_path):
    store = FileHistoryStore(tmp_path)
    await store.initialize()
    store.path_for("u1").write_text("{not json", encoding="utf-8")

    assert await store.load("u1") is None
    assert await store.save(_history("u1", "Hi", "Hello")) is True
    assert (await store.load("u1")).turn_count == 3


@pytest.mark.asyncio
async def test_saving_same_history_twice_is_idempotent(tmp_path):
    store = FileHistoryStore(tmp_path)
    await store.initialize()
    history = _history("u1", "Hi", "Hello")

    assert await store.save(history) is True
    first = json.loads(store.path_for("u1").read_text(encoding="utf-8"))
    assert await store.save(history) is True
    second = json.loads(store.path_for("u1").read_text(encoding="utf-8"))

    first.pop("updatedAt")
    second.pop("updatedAt")
    assert first == second
    assert [path.name for path in tmp_path.iterdir()] == [store.path_for("u1").name]

@pytest.mark.asyncio
async def test_shorter_snapshot_does_not_overwrite_longer(tmp_path):
    store = FileHistoryStore(tmp_path)
    await store.initialize()
    await store.save(_history("u1", "q1", "a1", "q2", "a2"))

    assert await store.save(_history("u1", "q1", "a1")) is False
    assert (await store.load("u1")).turn_count == 5


@pytest.mark.asyncio
async def test_write_failure_returns_false(tmp_path, monkeypatch):
    store = FileHistoryStore(tmp_path)
    await store.initialize()

    def _fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", _fail_replace)

    assert await store.save(_history("u1", "Hi", "Hello")) is False
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_initialize_creates_directory_and_ping(tmp_path):
    directory = tmp_path / "nested" / "history"
    store = FileHistoryStore(directory)

    await store.initialize()

    assert directory.is_dir()
    assert await store.ping() is True


def test_directory_defaults_to_settings(tmp_path):
    store = FileHistoryStore()

    assert store.directory == tmp_path / "chat_history"
