"""
LLM Request and Response Models

Pydantic models for LLM provider interactions.
Provider-agnostic models shared by the Google and local providers.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from stylechat.models.conversation import ConversationTurn


class LLMRequest(BaseModel):
    """Request to an LLM provider."""

    contents: List[ConversationTurn] = Field(
        ...,
        description="Ordered turns submitted as the full prompt context",
        min_length=1
    )
    temperature: Optional[float] = Field(
        None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (overrides default)"
    )
    top_p: Optional[float] = Field(
        None,
        gt=0.0,
        le=1.0,
        description="Nucleus sampling cap (overrides default)"
    )
    top_k: Optional[int] = Field(
        None,
        gt=0,
        description="Top-k sampling cap (overrides default)"
    )
    max_tokens: Optional[int] = Field(
        None,
        gt=0,
        description="Maximum tokens to generate (overrides default)"
    )
    stream: bool = Field(
        default=False,
        description="Whether to stream the response"
    )
    model: Optional[str] = Field(
        None,
        description="Specific model to use (overrides default)"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific parameters"
    )


class LLMUsage(BaseModel):
    """Token usage information."""

    prompt_tokens: int = Field(
        ...,
        ge=0,
        description="Number of tokens in the prompt"
    )
    completion_tokens: int = Field(
        ...,
        ge=0,
        description="Number of tokens in the completion"
    )
    total_tokens: int = Field(
        ...,
        ge=0,
        description="Total tokens used"
    )


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    content: str = Field(
        ...,
        description="Generated text content"
    )
    model: str = Field(
        ...,
        description="Model that generated the response"
    )
    usage: LLMUsage = Field(
        ...,
        description="Token usage information"
    )
    finish_reason: Literal["stop", "length", "content_filter", "error"] = Field(
        ...,
        description="Reason the generation stopped"
    )
    provider: str = Field(
        ...,
        description="Provider that handled the request (google, local)"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific response data"
    )


class LLMStreamChunk(BaseModel):
    """Streaming response chunk from an LLM provider."""

    content: str = Field(
        ...,
        description="Chunk of generated text"
    )
    finish_reason: Optional[Literal["stop", "length", "content_filter", "error"]] = Field(
        None,
        description="Reason if this is the final chunk"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional chunk metadata"
    )
