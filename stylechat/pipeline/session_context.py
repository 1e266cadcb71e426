"""
Session Context

Builds the per-user dialogue context from the history store and decides
which turns are submitted to the model.

Storage always keeps the full transcript. The context window policy only
narrows what is sent with a request.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from stylechat.config import SessionSettings
from stylechat.conversations.base import HistoryStore
from stylechat.models.conversation import ConversationHistory, ConversationTurn
from stylechat.pipeline.persona import persona_turn

logger = logging.getLogger(__name__)


class ContextWindow(ABC):
    """Policy selecting the turns submitted to the model."""

    @abstractmethod
    def select(self, turns: list[ConversationTurn]) -> list[ConversationTurn]:
        """Return the subset of ``turns`` to submit, in original order."""


class FullHistoryWindow(ContextWindow):
    """Submit the whole transcript."""

    def select(self, turns: list[ConversationTurn]) -> list[ConversationTurn]:
        return list(turns)


@dataclass(frozen=True)
class RecentExchangesWindow(ContextWindow):
    """Submit the persona turn plus the last ``max_exchanges`` user/model exchanges."""

    max_exchanges: int

    def __post_init__(self) -> None:
        if self.max_exchanges < 1:
            raise ValueError("max_exchanges must be at least 1")

    def select(self, turns: list[ConversationTurn]) -> list[ConversationTurn]:
        if not turns:
            return []
        head, tail = list(turns[:1]), list(turns[1:])
        keep = self.max_exchanges * 2
        if len(tail) <= keep:
            return head + tail
        recent = tail[-keep:]
        # window must open on a user turn
        while recent and recent[0].role == "model":
            recent = recent[1:]
        return head + recent


def window_from_settings(settings: SessionSettings) -> ContextWindow:
    if settings.max_exchanges is None:
        return FullHistoryWindow()
    return RecentExchangesWindow(max_exchanges=settings.max_exchanges)


class SessionContextBuilder:
    """
    Load or seed the conversation history for a user.

    A user with no stored history (or an empty one) gets a fresh history
    holding only the persona turn. The seed is not persisted here; it is
    saved together with the first exchange.
    """

    def __init__(self, store: HistoryStore, window: ContextWindow | None = None):
        self._store = store
        self._window = window or FullHistoryWindow()

    @property
    def store(self) -> HistoryStore:
        return self._store

    @property
    def window(self) -> ContextWindow:
        return self._window

    async def build_context(self, user_id: str) -> ConversationHistory:
        history = await self._store.load(user_id)
        if history is None or not history.turns:
            logger.debug("Seeding new conversation", extra={"user_id": user_id})
            return ConversationHistory(user_id=user_id, turns=[persona_turn()])
        return history

    def prompt_turns(self, history: ConversationHistory) -> list[ConversationTurn]:
        return self._window.select(history.turns)
