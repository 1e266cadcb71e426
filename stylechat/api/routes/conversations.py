"""Routes for reading persisted conversation history."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from stylechat.models.api import ErrorResponse, HistoryResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_history_store():
    from stylechat.api.main import app_state

    return app_state.get("history_store")


@router.get(
    "/conversations/{user_id}",
    response_model=HistoryResponse,
    response_model_by_alias=True,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def get_conversation(user_id: str):
    """Return the stored transcript for one user id."""
    store = _get_history_store()
    if store is None:
        logger.error("History store not initialized")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "service_unavailable",
                "message": "History store not initialized. Please try again later.",
            },
        )
    history = await store.load(user_id)
    if history is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "not_found", "message": f"No conversation for user '{user_id}'"},
        )
    record = history.to_record()
    return HistoryResponse(
        user_id=history.user_id,
        history=record["history"],
        updated_at=history.updated_at,
        turn_count=history.turn_count,
    )
