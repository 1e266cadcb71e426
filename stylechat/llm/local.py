"""
Local LLM Provider

Implementation of BaseLLMProvider for a local Ollama server.
Multimodal models (llava, bakllava, ...) receive images as base64 strings.
"""

import base64
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from stylechat.llm.base import BaseLLMProvider
from stylechat.llm.models import (
    LLMRequest,
    LLMResponse,
    LLMStreamChunk,
    LLMUsage,
)
from stylechat.models.conversation import ConversationTurn

logger = logging.getLogger(__name__)

_ROLE_MAP = {"user": "user", "model": "assistant"}


class LocalProvider(BaseLLMProvider):
    """Local LLM provider talking to Ollama's ``/api/chat`` endpoint."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llava:7b",
        temperature: float = 0.4,
        top_p: float = 1.0,
        top_k: int = 32,
        max_tokens: int = 4096,
        timeout: int = 60,
    ):
        """
        Initialize local provider.

        Args:
            base_url: Base URL for the Ollama server
            model: Model name (e.g., "llava:7b")
            temperature: Default temperature
            top_p: Default nucleus sampling cap
            top_k: Default top-k sampling cap
            max_tokens: Default max tokens
            timeout: Request timeout
        """
        super().__init__(
            provider_name="local",
            temperature=temperature,
            top_p=top_p,
            top_k=top_k,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.client = httpx.AsyncClient(timeout=float(timeout))

        logger.info(
            f"Local provider initialized: {base_url} with model: {model}",
            extra={"base_url": base_url, "model": model},
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate completion using the local model server."""
        request = self._apply_defaults(request)
        self._log_request(request)

        payload = self._build_payload(request, stream=False)
        response = await self.client.post(f"{self.base_url}/api/chat", json=payload)
        response.raise_for_status()
        body = response.json()

        prompt_tokens = body.get("prompt_eval_count", 0) or 0
        completion_tokens = body.get("eval_count", 0) or 0
        llm_response = LLMResponse(
            content=body.get("message", {}).get("content", ""),
            model=body.get("model", payload["model"]),
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason="length" if body.get("done_reason") == "length" else "stop",
            provider="local",
            metadata={"base_url": self.base_url},
        )

        self._log_response(llm_response)
        return llm_response

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        """Stream completion using the local model server."""
        request = self._apply_defaults(request)
        self._log_request(request)

        payload = self._build_payload(request, stream=True)
        async with self.client.stream(
            "POST",
            f"{self.base_url}/api/chat",
            json=payload,
        ) as response:
            response.raise_for_status()
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                chunk_data = json.loads(line)
                if content := chunk_data.get("message", {}).get("content"):
                    yield LLMStreamChunk(content=content, finish_reason=None)

    async def close(self) -> None:
        await self.client.aclose()

    def _build_payload(self, request: LLMRequest, *, stream: bool) -> dict[str, Any]:
        return {
            "model": request.model or self.model,
            "messages": [self._to_message(turn) for turn in request.contents],
            "stream": stream,
            "options": {
                "temperature": request.temperature,
                "top_p": request.top_p,
                "top_k": request.top_k,
                "num_predict": request.max_tokens,
            },
        }

    @staticmethod
    def _to_message(turn: ConversationTurn) -> dict[str, Any]:
        message: dict[str, Any] = {"role": _ROLE_MAP[turn.role], "content": turn.text}
        images = [base64.b64encode(part.data).decode("ascii") for part in turn.media_parts]
        if images:
            message["images"] = images
        return message
