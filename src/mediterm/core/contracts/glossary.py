"""GlossaryEntry: a mandatory (source phrase -> target phrase) constraint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GlossaryEntry(BaseModel):
    """One strong-matched term pair passed to the completion service."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    term_id: str

    def as_prompt_line(self) -> str:
        """Render the entry the way prompts list glossary items."""
        return f'- "{self.source}" -> "{self.target}"'


__all__ = ["GlossaryEntry"]
