"""Domain and API models."""

from stylechat.models.conversation import (
    ContentPart,
    ConversationHistory,
    ConversationTurn,
    MediaAttachment,
    MediaPart,
    TextPart,
)
from stylechat.models.errors import (
    ChatError,
    GenerationError,
    InvalidInputError,
    PersistenceWriteError,
    StoreUnavailableError,
)

__all__ = [
    "ContentPart",
    "ConversationHistory",
    "ConversationTurn",
    "MediaAttachment",
    "MediaPart",
    "TextPart",
    "ChatError",
    "GenerationError",
    "InvalidInputError",
    "PersistenceWriteError",
    "StoreUnavailableError",
]
