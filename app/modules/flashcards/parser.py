"""Turn raw generated text into validated flashcards.

Parsing is all-or-nothing: one bad element fails the whole response, so
callers never see a partial list.
"""

from __future__ import annotations

import json
import math
from typing import Any

from app.core.logging import get_logger
from app.modules.flashcards.errors import ParseError
from app.modules.flashcards.models.flashcards import Difficulty, Flashcard

logger = get_logger(__name__)

CHOICE_MARKERS = ("A)", "B)", "C)", "D)")

# Gemini list pricing per 1K tokens, applied to the whole estimate twice
INPUT_COST_PER_1K = 0.00025
OUTPUT_COST_PER_1K = 0.0005


def extract_json_array(raw: str) -> str:
    """Return the text between the first ``[`` and the last ``]``, inclusive.

    Kept separate so a stricter decoder can replace it without touching callers.
    """
    start = raw.find("[")
    end = raw.rfind("]")
    if start == -1 or end == -1 or end < start:
        raise ParseError("No valid JSON array found in response")
    return raw[start : end + 1]


def format_multiple_choice_question(question: str) -> str:
    """Put each of the A) to D) options on its own line.

    Applies only when all four markers are present and the options are not
    already line-broken, so running it twice changes nothing.
    """
    if not all(marker in question for marker in CHOICE_MARKERS):
        return question
    if "\nA)" in question or "\nB)" in question:
        return question

    formatted = question
    for marker in CHOICE_MARKERS:
        formatted = formatted.replace(marker, "\n" + marker)
    formatted = formatted.strip()
    if formatted.startswith("\n"):
        formatted = formatted[1:]
    return formatted


def _require_text(card: dict[str, Any], key: str, index: int) -> str:
    value = card.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ParseError(f"Invalid flashcard at index {index}: missing {key}", index=index)
    return value


def parse_flashcards(raw: str) -> list[Flashcard]:
    """Parse and normalise the flashcard array contained in ``raw``."""
    payload = extract_json_array(raw)
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ParseError(f"Response is not valid JSON: {e.msg}") from e

    if not isinstance(decoded, list):
        raise ParseError("Response is not an array")

    cards: list[Flashcard] = []
    for index, item in enumerate(decoded):
        if not isinstance(item, dict):
            raise ParseError(f"Invalid flashcard at index {index}", index=index)
        question = _require_text(item, "question", index)
        answer = _require_text(item, "answer", index)
        cards.append(
            Flashcard(
                question=format_multiple_choice_question(question.strip()).strip(),
                answer=answer.strip(),
                difficulty=Difficulty.coerce(item.get("difficulty")),
            )
        )
    return cards


def estimate_tokens(text: str) -> int:
    """Character-count heuristic: roughly four characters per token."""
    return math.ceil(len(text) / 4)


def estimate_cost_cents(tokens: int) -> int:
    input_cost = (tokens * INPUT_COST_PER_1K) / 1000
    output_cost = (tokens * OUTPUT_COST_PER_1K) / 1000
    # round half up
    return int(math.floor((input_cost + output_cost) * 100 + 0.5))
