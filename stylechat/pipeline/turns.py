"""Conversion of raw user input (text, image, or both) into a user turn."""

import logging
from collections.abc import Sequence

from stylechat.config import DEFAULT_MEDIA_CAPTION, Settings
from stylechat.models.conversation import (
    ContentPart,
    ConversationTurn,
    MediaAttachment,
    MediaPart,
    TextPart,
)
from stylechat.models.errors import InvalidInputError

logger = logging.getLogger(__name__)


class TurnComposer:
    """
    Build validated user turns.

    Parts are always ordered text first, then media. An image sent without a
    message gets ``default_caption`` as its text part.
    """

    def __init__(
        self,
        max_media_bytes: int = 5 * 1024 * 1024,
        allowed_mime_prefixes: Sequence[str] = ("image/",),
        default_caption: str = DEFAULT_MEDIA_CAPTION,
    ):
        self.max_media_bytes = max_media_bytes
        self.allowed_mime_prefixes = tuple(prefix.lower() for prefix in allowed_mime_prefixes)
        self.default_caption = default_caption

    @classmethod
    def from_settings(cls, settings: Settings) -> "TurnComposer":
        return cls(
            max_media_bytes=settings.media.max_bytes,
            allowed_mime_prefixes=settings.media.allowed_mime_prefixes,
            default_caption=settings.session.default_caption,
        )

    def validate_media(self, media: MediaAttachment) -> None:
        """Raise InvalidInputError for disallowed types, empty or oversized payloads."""
        mime_type = (media.mime_type or "").lower()
        if not mime_type.startswith(self.allowed_mime_prefixes):
            raise InvalidInputError(
                f"Unsupported media type '{media.mime_type}'. Only images are allowed.",
                context={"mime_type": media.mime_type, "upload_filename": media.filename},
            )
        if media.size_bytes == 0:
            raise InvalidInputError(
                "Media attachment is empty.",
                context={"upload_filename": media.filename},
            )
        if media.size_bytes > self.max_media_bytes:
            raise InvalidInputError(
                f"Media attachment exceeds {self.max_media_bytes} bytes.",
                context={"size_bytes": media.size_bytes, "upload_filename": media.filename},
            )

    def compose_user_turn(
        self,
        message: str | None = None,
        media: MediaAttachment | None = None,
    ) -> ConversationTurn:
        has_message = bool(message and message.strip())
        if not has_message and media is None:
            raise InvalidInputError("A message or an image is required.")

        parts: list[ContentPart] = []
        if has_message:
            parts.append(TextPart(text=message))
        if media is not None:
            self.validate_media(media)
            if not has_message:
                parts.append(TextPart(text=self.default_caption))
            parts.append(MediaPart(mime_type=media.mime_type, data=media.data))

        logger.debug(
            "Composed user turn",
            extra={"part_count": len(parts), "has_media": media is not None},
        )
        return ConversationTurn(role="user", parts=tuple(parts))
