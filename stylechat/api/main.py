"""
FastAPI Application

Main FastAPI application for StyleChat with:
- Lifespan management for history store and model provider
- CORS middleware for the web frontend
- Exception handlers for chat errors
- Health, chat and conversation endpoints

Usage:
    uvicorn stylechat.api.main:app --reload --port 3000
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stylechat import __version__
from stylechat.api.routes import chat, conversations, health
from stylechat.config import get_settings
from stylechat.conversations import create_history_store
from stylechat.llm import LLMProviderFactory
from stylechat.models.errors import ChatError, GenerationError, InvalidInputError
from stylechat.pipeline import ChatSession

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://127.0.0.1:5500",
    "http://127.0.0.1:5501",
    "http://localhost:3000",
    "https://equal-cristy-madhukiran-6b9e128e.koyeb.app",
]

# Global state for shared components
app_state = {
    "history_store": None,
    "provider": None,
    "chat_session": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Initializes:
    - History store (PostgreSQL, or the file fallback when unreachable)
    - LLM provider
    - Chat session orchestrator
    """
    config = get_settings()
    logger.info("Starting StyleChat API server...")

    try:
        logger.info("Initializing history store...")
        history_store = await create_history_store(config)
        app_state["history_store"] = history_store

        logger.info("Initializing LLM provider...")
        provider = LLMProviderFactory.create_default_provider(config.llm)
        app_state["provider"] = provider

        app_state["chat_session"] = ChatSession.from_components(history_store, provider, config)

        logger.info(
            "StyleChat API server started successfully",
            extra={"history_store": history_store.kind, "provider": provider.provider_name},
        )

        yield  # Application runs here

    finally:
        logger.info("Shutting down StyleChat API server...")

        if app_state["provider"]:
            try:
                await app_state["provider"].close()
            except Exception as e:
                logger.error(f"Error closing LLM provider: {e}")

        if app_state["history_store"]:
            try:
                await app_state["history_store"].close()
                logger.info("History store closed")
            except Exception as e:
                logger.error(f"Error closing history store: {e}")

        app_state["chat_session"] = None
        app_state["provider"] = None
        app_state["history_store"] = None
        logger.info("StyleChat API server shut down complete")


app = FastAPI(
    title="StyleChat API",
    description="Fashion-designer assistant with image feedback and persistent conversations",
    version=__version__,
    lifespan=lifespan,
)

cors_origins_env = os.getenv("CORS_ORIGINS", "")
cors_origins = (
    [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    if cors_origins_env
    else DEFAULT_CORS_ORIGINS
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Exception handlers
@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    """Reject bad client input."""
    logger.info(f"Invalid input: {exc.message}", extra={"context": exc.context})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_input", "message": exc.message},
    )


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    """Model call failed; history was left untouched."""
    logger.error(f"Generation error: {exc}", extra={"context": exc.context})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "generation_error", "message": exc.message},
    )


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    """Any other conversation error."""
    logger.error(
        f"Chat error: {exc}",
        extra={"component": exc.component, "recoverable": exc.recoverable},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "chat_error", "message": exc.message},
    )


# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(chat.router, prefix="/api/v1", tags=["chat"])
app.include_router(conversations.router, prefix="/api/v1", tags=["conversations"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "StyleChat API",
        "version": __version__,
        "description": "Virtual fashion designer with persistent conversations",
        "docs": "/docs",
    }


def get_chat_session() -> ChatSession:
    """Get the initialized chat session."""
    if app_state.get("chat_session") is None:
        raise RuntimeError("Chat session not initialized")
    return app_state["chat_session"]
