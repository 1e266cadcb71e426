"""
Conversation pipeline: persona seeding, context building, turn composition,
generation and commit.
"""

from stylechat.pipeline.gateway import GenerationGateway
from stylechat.pipeline.orchestrator import ChatSession, InteractionResult
from stylechat.pipeline.persona import persona_turn, policy_text
from stylechat.pipeline.session_context import (
    ContextWindow,
    FullHistoryWindow,
    RecentExchangesWindow,
    SessionContextBuilder,
    window_from_settings,
)
from stylechat.pipeline.turns import TurnComposer
from stylechat.pipeline.updater import CommitResult, SessionUpdater

__all__ = [
    "ChatSession",
    "CommitResult",
    "ContextWindow",
    "FullHistoryWindow",
    "GenerationGateway",
    "InteractionResult",
    "RecentExchangesWindow",
    "SessionContextBuilder",
    "SessionUpdater",
    "TurnComposer",
    "persona_turn",
    "policy_text",
    "window_from_settings",
]
