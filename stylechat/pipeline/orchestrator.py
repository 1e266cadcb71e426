"""
Chat Session Orchestrator

Runs one interaction end to end:

    validate/compose -> load or seed history -> generate -> commit

Input problems are rejected before the store or the model is touched.
A failed generation leaves the stored history untouched. A failed save is
logged and the reply is still returned.

Interactions for the same user id are serialized within this process
(configurable), so concurrent requests cannot drop each other's exchange.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from weakref import WeakValueDictionary

from stylechat.config import Settings
from stylechat.conversations.base import HistoryStore
from stylechat.llm.base import BaseLLMProvider
from stylechat.models.conversation import ConversationHistory, ConversationTurn, MediaAttachment
from stylechat.models.errors import GenerationError, InvalidInputError
from stylechat.pipeline.gateway import GenerationGateway
from stylechat.pipeline.session_context import SessionContextBuilder, window_from_settings
from stylechat.pipeline.turns import TurnComposer
from stylechat.pipeline.updater import SessionUpdater

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InteractionResult:
    """Outcome of one successful interaction."""

    reply: str
    history: ConversationHistory
    persisted: bool


class ChatSession:
    """Stateless per-request conversation flow over shared components."""

    def __init__(
        self,
        builder: SessionContextBuilder,
        composer: TurnComposer,
        gateway: GenerationGateway,
        updater: SessionUpdater,
        *,
        serialize_per_user: bool = True,
    ):
        self.builder = builder
        self.composer = composer
        self.gateway = gateway
        self.updater = updater
        self.serialize_per_user = serialize_per_user
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    @classmethod
    def from_components(
        cls,
        store: HistoryStore,
        provider: BaseLLMProvider,
        settings: Settings,
    ) -> "ChatSession":
        """Wire a session from a selected store, a provider and settings."""
        return cls(
            builder=SessionContextBuilder(store, window_from_settings(settings.session)),
            composer=TurnComposer.from_settings(settings),
            gateway=GenerationGateway(
                provider,
                temperature=settings.llm.temperature,
                top_p=settings.llm.top_p,
                top_k=settings.llm.top_k,
                max_output_tokens=settings.llm.max_tokens,
            ),
            updater=SessionUpdater(store),
            serialize_per_user=settings.session.serialize_per_user,
        )

    @property
    def store(self) -> HistoryStore:
        return self.builder.store

    def compose(
        self,
        user_id: str | None,
        message: str | None = None,
        media: MediaAttachment | None = None,
    ) -> ConversationTurn:
        """Validate request input and build the user turn."""
        if not user_id or not user_id.strip():
            raise InvalidInputError("userId is required.")
        return self.composer.compose_user_turn(message, media)

    async def interact(
        self,
        user_id: str,
        message: str | None = None,
        media: MediaAttachment | None = None,
        *,
        stream: bool = False,
    ) -> InteractionResult:
        """
        Run one exchange and return the reply.

        Args:
            user_id: Client-supplied user id
            message: Optional message text
            media: Optional image attachment
            stream: Use the provider's streaming call and join the chunks

        Raises:
            InvalidInputError: Missing or invalid input (nothing was touched)
            GenerationError: The model call failed (history unchanged)
        """
        user_turn = self.compose(user_id, message, media)
        start = time.perf_counter()

        async with self._user_lock(user_id):
            history = await self.builder.build_context(user_id)
            new_conversation = history.is_seeded_only
            prompt = self.builder.prompt_turns(history)
            if stream:
                model_turn = await self.gateway.generate_streaming(prompt, user_turn)
            else:
                model_turn = await self.gateway.generate(prompt, user_turn)
            result = await self.updater.commit(history, user_turn, model_turn)

        logger.info(
            "Interaction completed",
            extra={
                "user_id": user_id,
                "new_conversation": new_conversation,
                "turn_count": result.history.turn_count,
                "persisted": result.persisted,
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return InteractionResult(
            reply=model_turn.text,
            history=result.history,
            persisted=result.persisted,
        )

    async def interact_stream(
        self,
        user_id: str,
        message: str | None = None,
        media: MediaAttachment | None = None,
    ) -> AsyncIterator[str]:
        """
        Yield reply chunks for one exchange.

        Input is validated before the first chunk is requested, so
        InvalidInputError surfaces on the first iteration.
        """
        user_turn = self.compose(user_id, message, media)
        async for text in self.stream_reply(user_id, user_turn):
            yield text

    async def stream_reply(
        self,
        user_id: str,
        user_turn: ConversationTurn,
    ) -> AsyncIterator[str]:
        """
        Yield reply chunks for an already composed user turn.

        The exchange is committed only after the stream finished successfully.
        """
        async with self._user_lock(user_id):
            history = await self.builder.build_context(user_id)
            prompt = self.builder.prompt_turns(history)
            chunks: list[str] = []
            async for text in self.gateway.stream(prompt, user_turn):
                chunks.append(text)
                yield text

            reply = "".join(chunks)
            if not reply.strip():
                raise GenerationError("Model returned an empty reply")
            await self.updater.commit(history, user_turn, ConversationTurn.model_text(reply))

    async def history(self, user_id: str) -> ConversationHistory | None:
        """Persisted transcript for ``user_id`` (None when absent or unreachable)."""
        return await self.store.load(user_id)

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        if not self.serialize_per_user:
            yield
            return
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        async with lock:
            yield
