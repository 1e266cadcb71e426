"""
History Store Interface

Common load/save contract shared by the durable and fallback stores.
Backend failures never reach callers: a failed load reads as "no history"
and a failed save is logged and reported as ``False``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from stylechat.models.conversation import ConversationHistory
from stylechat.models.errors import PersistenceWriteError, StoreUnavailableError

logger = logging.getLogger(__name__)


class HistoryStore(ABC):
    """Per-user conversation history persistence."""

    kind: str = "abstract"

    async def initialize(self) -> None:
        """Prepare backing resources. Raises if the backend is unreachable."""
        return None

    async def close(self) -> None:
        return None

    async def load(self, user_id: str) -> ConversationHistory | None:
        """Return the persisted history for ``user_id``, or None."""
        try:
            return await self._read(user_id)
        except StoreUnavailableError as exc:
            logger.warning(
                f"History load failed, treating as absent: {exc}",
                extra={"store": self.kind, "user_id": user_id},
            )
            return None

    async def save(self, history: ConversationHistory) -> bool:
        """
        Upsert ``history`` keyed by its user id.

        Returns:
            True when the store accepted the write, False otherwise
        """
        try:
            return await self._write(history)
        except StoreUnavailableError as exc:
            error = PersistenceWriteError(
                self.kind,
                exc.message,
                context={"user_id": history.user_id, "turn_count": history.turn_count},
            )
            logger.error(
                f"History save failed: {error}",
                extra={"store": self.kind, **error.context},
            )
            return False

    async def ping(self) -> bool:
        """Lightweight readiness check."""
        return True

    @abstractmethod
    async def _read(self, user_id: str) -> ConversationHistory | None:
        """Backend read. Raises StoreUnavailableError on failure."""

    @abstractmethod
    async def _write(self, history: ConversationHistory) -> bool:
        """
        Backend upsert. Raises StoreUnavailableError on failure.

        Returns False when a newer (longer) transcript is already stored and
        the write was skipped.
        """
