"""Local-filesystem fallback for conversation history."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from pydantic import ValidationError

from stylechat.config import get_settings
from stylechat.conversations.base import HistoryStore
from stylechat.models.conversation import ConversationHistory
from stylechat.models.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class FileHistoryStore(HistoryStore):
    """
    One JSON file per user, holding the persisted record shape.

    File names are the SHA-256 of the user id so arbitrary client ids are
    safe on disk. Writes go through a temp file and ``os.replace``.
    """

    kind = "file"

    def __init__(self, directory: Path | str | None = None) -> None:
        if directory is None:
            directory = get_settings().history_file.dir
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    async def initialize(self) -> None:
        await asyncio.to_thread(self._dir.mkdir, parents=True, exist_ok=True)
        logger.info(f"File history store ready at {self._dir}")

    async def ping(self) -> bool:
        return self._dir.is_dir() and os.access(self._dir, os.W_OK)

    def path_for(self, user_id: str) -> Path:
        digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return self._dir / f"{digest}.json"

    async def _read(self, user_id: str) -> ConversationHistory | None:
        return await asyncio.to_thread(self._read_sync, user_id)

    async def _write(self, history: ConversationHistory) -> bool:
        return await asyncio.to_thread(self._write_sync, history)

    def _read_sync(self, user_id: str) -> ConversationHistory | None:
        path = self.path_for(user_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as handle:
                record = json.load(handle)
            return ConversationHistory.from_record(record)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StoreUnavailableError(
                self.kind, f"Failed to read history file {path.name}: {exc}"
            ) from exc

    def _write_sync(self, history: ConversationHistory) -> bool:
        try:
            existing = self._read_sync(history.user_id)
        except StoreUnavailableError as exc:
            logger.warning(f"Overwriting unreadable history file: {exc}")
            existing = None
        if existing is not None and existing.turn_count > history.turn_count:
            logger.warning(
                "Skipped stale history snapshot; a longer transcript is already stored",
                extra={"user_id": history.user_id, "turn_count": history.turn_count},
            )
            return False

        path = self.path_for(history.user_id)
        record = history.model_copy(update={"updated_at": datetime.now(UTC)}).to_record()
        tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(record, handle, indent=2)
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise StoreUnavailableError(
                self.kind, f"Failed to write history file {path.name}: {exc}"
            ) from exc
        return True
