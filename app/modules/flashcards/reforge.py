"""Reforge: regenerate or extend an existing set's cards from note content."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Protocol

from app.modules.flashcards.errors import ValidationError


class ReforgeAction(str, Enum):
    REGENERATE = "regenerate"  # replace every card in the set
    ADD_MORE = "add_more"  # keep existing cards, append new ones


class HasQuestion(Protocol):
    question: str


def build_dedupe_context(cards: Iterable[HasQuestion]) -> list[str]:
    """Existing question texts, used to steer the model away from repeats.

    Advisory only; generated cards are not filtered against this list.
    """
    return [c.question for c in cards if c.question and c.question.strip()]


def expected_total(existing_count: int, generated_count: int, action: ReforgeAction) -> int:
    if ReforgeAction(action) is ReforgeAction.REGENERATE:
        return generated_count
    return existing_count + generated_count


def resolve_source_text(
    note_content: str,
    selected_section: Optional[str],
    use_selected_section: bool,
) -> str:
    """Pick the text to generate from: the whole note or a selected section."""
    if not use_selected_section:
        return note_content
    if not selected_section or not selected_section.strip():
        raise ValidationError(
            'Selected section is required when "Use selected section" is enabled',
            field="selected_section",
        )
    return selected_section
