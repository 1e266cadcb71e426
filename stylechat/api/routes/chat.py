"""
Chat Routes

FastAPI endpoints for the conversational assistant. Accepts text, an image
upload, or both, and answers in the configured persona.
"""

import logging

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.responses import JSONResponse, StreamingResponse

from stylechat.models.api import ChatResponse, ChatTextRequest, ErrorResponse
from stylechat.models.conversation import MediaAttachment
from stylechat.models.errors import ChatError
from stylechat.pipeline import ChatSession

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    500: {"model": ErrorResponse, "description": "Generation or server error"},
    503: {"model": ErrorResponse, "description": "Service not initialized"},
}


def _get_chat_session() -> ChatSession:
    from stylechat.api.main import get_chat_session

    return get_chat_session()


def _not_ready_response(exc: RuntimeError) -> JSONResponse:
    logger.error(f"Chat session not initialized: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "service_unavailable",
            "message": "Chat service not initialized. Please try again later.",
        },
    )


def _internal_error_response(exc: Exception) -> JSONResponse:
    logger.error(f"Unexpected error in chat endpoint: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "message": str(exc)},
    )


async def _read_upload(image: UploadFile | None, max_bytes: int) -> MediaAttachment | None:
    """
    Read an uploaded image without loading more than ``max_bytes + 1`` bytes.

    An empty file field without a filename counts as no upload.
    """
    if image is None:
        return None
    data = await image.read(max_bytes + 1)
    if not data and not image.filename:
        return None
    return MediaAttachment(
        mime_type=image.content_type or "application/octet-stream",
        data=data,
        filename=image.filename,
    )


@router.post("/chat", response_model=ChatResponse, responses=_ERROR_RESPONSES)
async def chat(
    user_id: str | None = Form(None, alias="userId"),
    message: str | None = Form(None),
    image: UploadFile | None = File(None),
):
    """
    Unified chat endpoint for text and image input.

    Form fields:
        userId: Client user id (required)
        message: Message text (optional when an image is attached)
        image: Image file, at most 5 MiB (optional)

    Returns:
        ChatResponse with the assistant reply
    """
    try:
        session = _get_chat_session()
    except RuntimeError as e:
        return _not_ready_response(e)

    try:
        media = await _read_upload(image, session.composer.max_media_bytes)
        result = await session.interact(user_id, message, media)
    except ChatError:
        raise
    except Exception as e:
        return _internal_error_response(e)

    return ChatResponse(response=result.reply)


@router.post("/chat/text", response_model=ChatResponse, responses=_ERROR_RESPONSES)
async def chat_text(chat_request: ChatTextRequest):
    """Text-only chat with a JSON body."""
    try:
        session = _get_chat_session()
    except RuntimeError as e:
        return _not_ready_response(e)

    try:
        result = await session.interact(chat_request.user_id, chat_request.message)
    except ChatError:
        raise
    except Exception as e:
        return _internal_error_response(e)

    return ChatResponse(response=result.reply)


@router.post("/chat/stream", responses=_ERROR_RESPONSES)
async def chat_stream(
    user_id: str | None = Form(None, alias="userId"),
    message: str | None = Form(None),
    image: UploadFile | None = File(None),
):
    """
    Stream the reply as plain text chunks.

    The first chunk is produced before the response starts, so input and
    generation errors still map to proper status codes. The exchange is
    saved once the stream completes.
    """
    try:
        session = _get_chat_session()
    except RuntimeError as e:
        return _not_ready_response(e)

    try:
        media = await _read_upload(image, session.composer.max_media_bytes)
        stream = session.interact_stream(user_id, message, media)
        first_chunk = await anext(stream)
    except ChatError:
        raise
    except Exception as e:
        return _internal_error_response(e)

    async def body():
        try:
            yield first_chunk
            async for text in stream:
                yield text
        finally:
            await stream.aclose()

    return StreamingResponse(body(), media_type="text/plain; charset=utf-8")
