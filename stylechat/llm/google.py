"""
Google LLM Provider

Implementation of BaseLLMProvider for Google's Gemini models.
Sends multi-part turns (text and inline images) as Gemini contents.
"""

import logging
import warnings
from collections.abc import AsyncIterator
from typing import Any

from stylechat.llm.base import BaseLLMProvider
from stylechat.llm.models import (
    LLMRequest,
    LLMResponse,
    LLMStreamChunk,
    LLMUsage,
)
from stylechat.models.conversation import ConversationTurn, MediaPart

logger = logging.getLogger(__name__)


class GoogleProvider(BaseLLMProvider):
    """
    Google (Gemini) LLM provider implementation.

    Uses the google-generativeai Python SDK. Conversation roles map one to
    one (``user`` / ``model``); image parts are passed as inline data.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.4,
        top_p: float = 1.0,
        top_k: int = 32,
        max_tokens: int = 4096,
        timeout: int = 60,
    ):
        """Initialize Google provider."""
        super().__init__(
            provider_name="google",
            temperature=temperature,
            top_p=top_p,
            top_k=top_k,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.model = model
        self.api_key = api_key

        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", FutureWarning)
                import google.generativeai as genai

            genai.configure(api_key=api_key)
            self.genai = genai
            self.client = genai.GenerativeModel(model)
        except ImportError:
            logger.warning(
                "google-generativeai package not installed. "
                "Install with: pip install google-generativeai"
            )
            self.genai = None
            self.client = None

        logger.info(f"Google provider initialized with model: {model}", extra={"model": model})

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate completion using Google Gemini API."""
        if not self.genai:
            raise ImportError("google-generativeai package not installed")

        request = self._apply_defaults(request)
        self._log_request(request)

        model_name = request.model or self.model
        client = self.genai.GenerativeModel(model_name)

        response = await client.generate_content_async(
            self.to_contents(request.contents),
            generation_config=self._generation_config(request),
            request_options={"timeout": self.timeout},
        )
        response_text = self._extract_response_text(response)
        finish_reason = self._extract_finish_reason(response)

        # Estimate token usage (Gemini doesn't always provide exact counts)
        prompt_tokens = sum(self.count_tokens(turn.text) for turn in request.contents)
        completion_tokens = self.count_tokens(response_text)

        llm_response = LLMResponse(
            content=response_text,
            model=model_name,
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason=finish_reason,
            provider="google",
            metadata={"raw_finish_reason": self._extract_raw_finish_reason(response)},
        )

        self._log_response(llm_response)
        return llm_response

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        """Stream completion using Google Gemini API."""
        if not self.genai:
            raise ImportError("google-generativeai package not installed")

        request = self._apply_defaults(request)
        self._log_request(request)

        model_name = request.model or self.model
        client = self.genai.GenerativeModel(model_name)

        response = await client.generate_content_async(
            self.to_contents(request.contents),
            generation_config=self._generation_config(request),
            request_options={"timeout": self.timeout},
            stream=True,
        )

        async for chunk in response:
            text = self._extract_response_text(chunk)
            if text:
                yield LLMStreamChunk(content=text, finish_reason=None)

    @staticmethod
    def to_contents(turns: list[ConversationTurn]) -> list[dict[str, Any]]:
        """Convert turns to the Gemini ``contents`` structure."""
        contents = []
        for turn in turns:
            parts: list[dict[str, Any]] = []
            for part in turn.parts:
                if isinstance(part, MediaPart):
                    parts.append(
                        {"inline_data": {"mime_type": part.mime_type, "data": part.data}}
                    )
                else:
                    parts.append({"text": part.text})
            contents.append({"role": turn.role, "parts": parts})
        return contents

    def count_tokens(self, text: str) -> int:
        """Count tokens for Google models."""
        # Rough approximation
        return len(text) // 4

    def _generation_config(self, request: LLMRequest) -> Any:
        return self.genai.types.GenerationConfig(
            temperature=request.temperature,
            top_p=request.top_p,
            top_k=request.top_k,
            max_output_tokens=request.max_tokens,
        )

    def _extract_response_text(self, response: Any) -> str:
        try:
            text = response.text
        except (AttributeError, ValueError):
            # SDK raises ValueError when a candidate carries no text parts
            return ""
        if isinstance(text, str):
            return text
        if text is None:
            return ""
        return str(text)

    def _extract_raw_finish_reason(self, response: Any) -> str:
        candidates = getattr(response, "candidates", None)
        if not candidates:
            return ""
        first = candidates[0] if len(candidates) > 0 else None
        if first is None:
            return ""
        reason = getattr(first, "finish_reason", "")
        return str(reason or "")

    def _extract_finish_reason(self, response: Any) -> str:
        raw_reason = self._extract_raw_finish_reason(response).lower()
        if any(token in raw_reason for token in ("max_tokens", "length")):
            return "length"
        if any(token in raw_reason for token in ("safety", "blocked", "recitation")):
            return "content_filter"
        if "error" in raw_reason:
            return "error"
        return "stop"
