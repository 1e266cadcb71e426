"""
API Request/Response Models

Pydantic models for FastAPI endpoints.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatTextRequest(BaseModel):
    """JSON request model for text-only chat."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userId": "u1",
                "message": "What should I wear to a beach wedding?",
            }
        },
    )

    user_id: str = Field(..., alias="userId", min_length=1, description="Client user id")
    message: str | None = Field(None, description="User message")


class ChatResponse(BaseModel):
    """Response model for chat endpoints."""

    response: str = Field(..., description="Assistant reply")


class ErrorResponse(BaseModel):
    """Error body returned by exception handlers."""

    error: str = Field(..., description="Error category")
    message: str = Field(..., description="Human-readable error description")


class HistoryResponse(BaseModel):
    """Persisted conversation transcript for one user."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    history: list[dict[str, Any]] = Field(default_factory=list)
    updated_at: datetime | None = Field(None, alias="updatedAt")
    turn_count: int = Field(..., alias="turnCount", ge=0)


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""

    status: str = Field(..., description="Service status: 'healthy' or 'unhealthy'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")


class ReadinessResponse(BaseModel):
    """Response model for readiness check endpoint."""

    status: str = Field(..., description="Readiness status: 'ready' or 'not_ready'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")
    checks: dict[str, bool] = Field(
        ..., description="Individual readiness checks (history_store, session)"
    )
    history_store: str | None = Field(
        None, description="Active history store variant ('postgres' or 'file')"
    )
    provider: str | None = Field(None, description="Active LLM provider ('google' or 'local')")

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "ready",
                "version": "0.1.0",
                "timestamp": "2026-01-15T12:00:00+00:00",
                "checks": {"history_store": True, "session": True},
                "history_store": "postgres",
                "provider": "google",
            }
        }
    }
