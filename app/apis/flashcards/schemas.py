from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.modules.flashcards.models.flashcards import Difficulty
from app.modules.flashcards.preferences import PreferenceKind
from app.modules.flashcards.reforge import ReforgeAction


CardStatusValue = Literal["new", "learning", "review", "mastered"]
DifficultyValue = Literal["easy", "medium", "hard", "all"]


class FlashcardIn(BaseModel):
    """A generated card as returned in preview mode."""

    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    difficulty: Difficulty = Difficulty.MEDIUM

    @field_validator("question", "answer")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class FlashcardRead(BaseModel):
    id: int
    question: str
    answer: str
    status: str
    difficulty_level: int
    order_index: int
    review_count: int = 0
    correct_count: int = 0
    last_reviewed: str | None = None


class FlashcardSetSummary(BaseModel):
    id: int
    note_id: int | None = None
    title: str
    description: str | None = None
    total_cards: int
    mastered_cards: int
    is_public: bool
    created_at: str
    updated_at: str | None = None


class FlashcardSetRead(FlashcardSetSummary):
    flashcards: list[FlashcardRead] = Field(default_factory=list)


class GenerateFlashcardsRequest(BaseModel):
    """Overrides applied on top of the user's saved generate preferences."""

    min_count: Optional[int] = None
    difficulty: Optional[DifficultyValue] = None
    custom_prompt: Optional[str] = None
    preview_mode: Optional[bool] = None


class GenerateFlashcardsResponse(BaseModel):
    preview: bool
    flashcards: list[FlashcardIn] = Field(default_factory=list)
    estimated_tokens: int = 0
    estimated_cost_cents: int = 0
    flashcard_set: FlashcardSetSummary | None = None


class SaveFlashcardsRequest(BaseModel):
    note_id: Optional[int] = None
    flashcards: list[FlashcardIn] = Field(..., min_length=1)


class ReforgeRequest(BaseModel):
    """Reforge overrides; ``flashcards`` applies a previously previewed batch."""

    action: Optional[ReforgeAction] = None
    min_count: Optional[int] = None
    difficulty: Optional[DifficultyValue] = None
    use_selected_section: Optional[bool] = None
    preview_mode: Optional[bool] = None
    selected_section: Optional[str] = None
    flashcards: Optional[list[FlashcardIn]] = None


class ReforgeResponse(BaseModel):
    preview: bool
    action: ReforgeAction
    generated: list[FlashcardIn] = Field(default_factory=list)
    estimated_tokens: int = 0
    estimated_cost_cents: int = 0
    flashcard_set: FlashcardSetRead


class SetProgressRead(BaseModel):
    total: int
    mastered: int
    percentage: int


class CardNavigationRead(BaseModel):
    index: int
    total: int
    previous_id: int | None = None
    next_id: int | None = None
    is_last: bool


class StudyCardRead(BaseModel):
    card: FlashcardRead
    navigation: CardNavigationRead
    progress: SetProgressRead


class ReviewRequest(BaseModel):
    was_correct: bool
    status: Optional[CardStatusValue] = None


class SharingUpdate(BaseModel):
    is_public: bool


class PreferencesRead(BaseModel):
    kind: PreferenceKind
    preferences: dict[str, Any]
