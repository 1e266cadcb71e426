"""
Conversation Models

Pydantic models for turns, content parts and per-user conversation history.

Media bytes stay raw inside the domain model. They are base64-encoded only
when a model is serialized (persistence records, API payloads) and decoded
again when a record is validated.
"""

import base64
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class TextPart(BaseModel):
    """Plain text content."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Text body")


class MediaPart(BaseModel):
    """Inline binary media (images) sent alongside text."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mime_type: str = Field(..., alias="mimeType", min_length=1, description="MIME type")
    data: bytes = Field(..., description="Raw media bytes (base64 when serialized)")

    @field_validator("data", mode="before")
    @classmethod
    def decode_base64(cls, v: Any) -> Any:
        """Accept base64 text from persisted records."""
        if isinstance(v, str):
            return base64.b64decode(v, validate=True)
        return v

    @field_serializer("data")
    def encode_base64(self, data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")

    @property
    def size_bytes(self) -> int:
        return len(self.data)


ContentPart = Union[TextPart, MediaPart]


class ConversationTurn(BaseModel):
    """One message produced by the user or the model. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"] = Field(..., description="Who produced the turn")
    parts: tuple[ContentPart, ...] = Field(
        ...,
        min_length=1,
        description="Ordered content parts",
    )

    @classmethod
    def user_text(cls, text: str) -> "ConversationTurn":
        return cls(role="user", parts=(TextPart(text=text),))

    @classmethod
    def model_text(cls, text: str) -> "ConversationTurn":
        return cls(role="model", parts=(TextPart(text=text),))

    @property
    def text(self) -> str:
        """All text parts joined by newlines."""
        return "\n".join(part.text for part in self.parts if isinstance(part, TextPart))

    @property
    def media_parts(self) -> list[MediaPart]:
        return [part for part in self.parts if isinstance(part, MediaPart)]


class ConversationHistory(BaseModel):
    """
    Ordered transcript owned by one user id.

    Serialized with aliases this is exactly the persisted record shape:
    ``{"userId", "history": [turns...], "updatedAt"}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1, description="Owning user id")
    turns: list[ConversationTurn] = Field(
        default_factory=list,
        alias="history",
        description="Turns in insertion order",
    )
    updated_at: datetime | None = Field(
        None,
        alias="updatedAt",
        description="Last time the record was persisted",
    )

    @property
    def turn_count(self) -> int:
        return len(self.turns)

    @property
    def is_seeded_only(self) -> bool:
        """True while the history holds nothing but the persona seed."""
        return len(self.turns) == 1

    def appended(self, *turns: ConversationTurn) -> "ConversationHistory":
        """Return a new history with ``turns`` added at the end."""
        return self.model_copy(update={"turns": [*self.turns, *turns]})

    def to_record(self) -> dict[str, Any]:
        """JSON-ready persisted record."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ConversationHistory":
        return cls.model_validate(record)


@dataclass(frozen=True)
class MediaAttachment:
    """Inbound media before validation."""

    mime_type: str
    data: bytes
    filename: str | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)
