"""Appending an exchange to the history and persisting it."""

import logging
from dataclasses import dataclass

from stylechat.conversations.base import HistoryStore
from stylechat.models.conversation import ConversationHistory, ConversationTurn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    """Updated history and whether the store accepted it."""

    history: ConversationHistory
    persisted: bool


class SessionUpdater:
    """Commit a user turn and the model reply it elicited, always together."""

    def __init__(self, store: HistoryStore):
        self._store = store

    async def commit(
        self,
        history: ConversationHistory,
        user_turn: ConversationTurn,
        model_turn: ConversationTurn,
    ) -> CommitResult:
        if user_turn.role != "user" or model_turn.role != "model":
            raise ValueError("commit expects a user turn followed by a model turn")

        updated = history.appended(user_turn, model_turn)
        persisted = await self._store.save(updated)
        if not persisted:
            logger.warning(
                "Exchange delivered without being persisted",
                extra={"user_id": history.user_id, "turn_count": updated.turn_count},
            )
        return CommitResult(history=updated, persisted=persisted)
