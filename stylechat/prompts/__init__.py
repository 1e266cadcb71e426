"""Prompt file loading."""

from stylechat.prompts.loader import PromptLoader

__all__ = ["PromptLoader"]
