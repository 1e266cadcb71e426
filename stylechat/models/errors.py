"""
Chat Errors

Exception hierarchy for the conversation core. Each error records the
component that raised it and whether the interaction can continue.
"""

from typing import Any


class ChatError(Exception):
    """
    Base exception for conversation errors.

    Attributes:
        component: Name of the component that raised the error
        message: Error description
        recoverable: Whether the interaction can continue despite the error
        context: Additional context for debugging
    """

    def __init__(
        self,
        component: str,
        message: str,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
    ):
        self.component = component
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(f"[{component}] {message}")


class InvalidInputError(ChatError):
    """Request input rejected before touching history or the model."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__("TurnComposer", message, recoverable=False, context=context)


class StoreUnavailableError(ChatError):
    """History store could not be reached (absorbed by the store adapter)."""

    def __init__(self, store: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(store, message, recoverable=True, context=context)


class GenerationError(ChatError):
    """The model call failed; no history is mutated."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__("GenerationGateway", message, recoverable=False, context=context)


class PersistenceWriteError(ChatError):
    """Saving history failed after a successful generation (logged only)."""

    def __init__(self, store: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(store, message, recoverable=True, context=context)
