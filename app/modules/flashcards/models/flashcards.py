"""Pydantic models for flashcard generation.

These are transient, generation-time shapes. Persisted cards (with ids,
review counters and timestamps) live in ``app.core.db.schemas.flashcards``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.config import settings


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def coerce(cls, value: Any) -> "Difficulty":
        """Map missing or unrecognised values to medium."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM

    @property
    def level(self) -> int:
        return _LEVELS[self]


_LEVELS = {Difficulty.EASY: 1, Difficulty.MEDIUM: 2, Difficulty.HARD: 3}


class Flashcard(BaseModel):
    """Question/answer flashcard with a difficulty tier."""

    question: str
    answer: str
    difficulty: Difficulty = Difficulty.MEDIUM

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, v: Any) -> Difficulty:
        return Difficulty.coerce(v)


class GenerationRequest(BaseModel):
    """Inputs for a single generation call; built fresh per invocation."""

    source_text: str
    requested_count: int = 10
    difficulty: Difficulty = Difficulty.MEDIUM
    dedupe_context: Optional[list[str]] = None
    custom_instructions: Optional[str] = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, v: Any) -> Difficulty:
        # "all" and other non-tier values are sent upstream as medium
        return Difficulty.coerce(v)


class GenerationConfig(BaseModel):
    """Sampling hyperparameters sent as ``generationConfig``."""

    temperature: float = Field(default_factory=lambda: settings.gemini.temperature)
    top_p: float = Field(default_factory=lambda: settings.gemini.top_p)
    top_k: int = Field(default_factory=lambda: settings.gemini.top_k)
    max_output_tokens: int = Field(
        default_factory=lambda: settings.gemini.max_output_tokens
    )

    def to_payload(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
        }


class GenerationResult(BaseModel):
    flashcards: list[Flashcard] = Field(default_factory=list)
    estimated_tokens: int = 0
    estimated_cost_cents: int = 0
