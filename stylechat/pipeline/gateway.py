"""
Generation Gateway

Single boundary around the external model call. Every provider failure
surfaces as GenerationError; calls are made once, without retries.
"""

import logging
from collections.abc import AsyncIterator, Callable

from stylechat.llm.base import BaseLLMProvider
from stylechat.llm.models import LLMRequest
from stylechat.models.conversation import ConversationTurn
from stylechat.models.errors import GenerationError

logger = logging.getLogger(__name__)


class GenerationGateway:
    """Submit ``turns + [new_turn]`` to the provider and return the model turn."""

    def __init__(
        self,
        provider: BaseLLMProvider,
        *,
        temperature: float | None = None,
        top_p: float | None = None,
        top_k: int | None = None,
        max_output_tokens: int | None = None,
    ):
        self._provider = provider
        self.temperature = temperature
        self.top_p = top_p
        self.top_k = top_k
        self.max_output_tokens = max_output_tokens

    @property
    def provider(self) -> BaseLLMProvider:
        return self._provider

    def _build_request(
        self,
        turns: list[ConversationTurn],
        new_turn: ConversationTurn,
        *,
        stream: bool = False,
    ) -> LLMRequest:
        return LLMRequest(
            contents=[*turns, new_turn],
            temperature=self.temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_tokens=self.max_output_tokens,
            stream=stream,
        )

    async def generate(
        self,
        turns: list[ConversationTurn],
        new_turn: ConversationTurn,
    ) -> ConversationTurn:
        request = self._build_request(turns, new_turn)
        try:
            response = await self._provider.generate(request)
        except Exception as e:
            logger.error(
                f"Generation failed: {e}",
                exc_info=True,
                extra={"provider": self._provider.provider_name},
            )
            raise GenerationError(
                f"Model call failed: {e}",
                context={"provider": self._provider.provider_name},
            ) from e

        if not response.content.strip():
            raise GenerationError(
                "Model returned an empty reply",
                context={"finish_reason": response.finish_reason},
            )
        return ConversationTurn.model_text(response.content)

    async def stream(
        self,
        turns: list[ConversationTurn],
        new_turn: ConversationTurn,
    ) -> AsyncIterator[str]:
        """Yield reply text chunks in the order the provider produces them."""
        request = self._build_request(turns, new_turn, stream=True)
        try:
            async for chunk in self._provider.stream(request):
                if chunk.content:
                    yield chunk.content
        except Exception as e:
            logger.error(
                f"Streaming generation failed: {e}",
                exc_info=True,
                extra={"provider": self._provider.provider_name},
            )
            raise GenerationError(
                f"Model stream failed: {e}",
                context={"provider": self._provider.provider_name},
            ) from e

    async def generate_streaming(
        self,
        turns: list[ConversationTurn],
        new_turn: ConversationTurn,
        on_chunk: Callable[[str], None] | None = None,
    ) -> ConversationTurn:
        """Consume the stream and return one model turn holding the joined text."""
        chunks: list[str] = []
        async for text in self.stream(turns, new_turn):
            chunks.append(text)
            if on_chunk is not None:
                on_chunk(text)
        reply = "".join(chunks)
        if not reply.strip():
            raise GenerationError("Model returned an empty reply")
        return ConversationTurn.model_text(reply)
