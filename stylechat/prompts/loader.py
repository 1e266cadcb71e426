"""Prompt loading utilities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

PROMPTS_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class PromptEntry:
    """Loaded prompt content and metadata."""

    content: str
    metadata: dict[str, Any]


class PromptLoader:
    """Load prompt files shipped with the package, splitting off YAML front matter."""

    def __init__(self, prompts_dir: str | Path | None = None) -> None:
        self.prompts_dir = Path(prompts_dir) if prompts_dir is not None else PROMPTS_DIR
        self.cache: dict[str, PromptEntry] = {}

    def load(self, prompt_path: str) -> str:
        """
        Load prompt from file.

        Args:
            prompt_path: Relative path (e.g., "system/persona.md")

        Returns:
            Prompt content as string, front matter removed
        """
        return self.load_entry(prompt_path).content

    def load_entry(self, prompt_path: str) -> PromptEntry:
        """Load prompt content together with its front matter metadata."""
        if prompt_path in self.cache:
            return self.cache[prompt_path]

        file_path = self.prompts_dir / prompt_path
        if not file_path.exists():
            raise FileNotFoundError(f"Prompt not found: {file_path}")

        content = file_path.read_text(encoding="utf-8")
        metadata: dict[str, Any] = {}
        prompt_content = content

        if content.startswith("---"):
            parts = content.split("---", 2)
            if len(parts) == 3:
                metadata = yaml.safe_load(parts[1]) or {}
                prompt_content = parts[2].strip()

        entry = PromptEntry(content=prompt_content, metadata=metadata)
        self.cache[prompt_path] = entry
        return entry
