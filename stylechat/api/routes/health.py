"""
Health Check Routes

FastAPI endpoints for service health and readiness checks.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from stylechat import __version__
from stylechat.models.api import HealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """
    Basic liveness check.

    Returns 200 OK if the service is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness() -> JSONResponse:
    """
    Readiness check for service dependencies.

    Checks:
    - History store is initialized and reachable
    - Chat session is initialized

    Returns:
        200 OK if all checks pass
        503 Service Unavailable if any check fails
    """
    from stylechat.api.main import app_state

    checks: dict[str, bool] = {}
    all_ready = True

    store = app_state.get("history_store")
    try:
        if store is not None:
            checks["history_store"] = await store.ping()
        else:
            checks["history_store"] = False
    except Exception as e:
        checks["history_store"] = False
        logger.warning(f"History store check: FAILED ({e})")
    if not checks["history_store"]:
        all_ready = False
        logger.warning("History store check: FAILED")

    checks["session"] = app_state.get("chat_session") is not None
    if not checks["session"]:
        all_ready = False
        logger.warning("Session check: FAILED (not initialized)")

    response_data = ReadinessResponse(
        status="ready" if all_ready else "not_ready",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        checks=checks,
        history_store=store.kind if store is not None else None,
        provider=getattr(app_state.get("provider"), "provider_name", None),
    )

    status_code = status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content=response_data.model_dump(),
    )
