"""Persona policy seeded as the first turn of every new conversation."""

import logging
from functools import lru_cache

from stylechat.models.conversation import ConversationTurn
from stylechat.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)

PERSONA_PROMPT_PATH = "system/persona.md"


@lru_cache
def policy_text() -> str:
    """Return the persona instruction text."""
    entry = PromptLoader().load_entry(PERSONA_PROMPT_PATH)
    logger.info(
        "Loaded persona prompt",
        extra={
            "prompt_name": entry.metadata.get("name"),
            "prompt_version": entry.metadata.get("version"),
        },
    )
    return entry.content


def persona_turn() -> ConversationTurn:
    """The seed turn. The persona travels as a ``user`` turn, never ``system``."""
    return ConversationTurn.user_text(policy_text())
