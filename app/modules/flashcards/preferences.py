"""Saved per-user settings for the generate and reforge flows.

Preferences are an explicit object with load (merge stored values over
defaults), merge (apply a partial update) and save (see
``PreferencesService``) operations.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from app.core.config import settings
from app.core.logging import get_logger
from app.modules.flashcards.errors import ValidationError
from app.modules.flashcards.models.flashcards import Difficulty, GenerationRequest
from app.modules.flashcards.reforge import ReforgeAction

logger = get_logger(__name__)

DifficultyChoice = Literal["easy", "medium", "hard", "all"]


class PreferenceKind(str, Enum):
    GENERATE = "generate"
    REFORGE = "reforge"


def _check_count(value: int, ceiling: int) -> int:
    if value < 1 or value > ceiling:
        raise ValueError(f"Minimum count must be between 1 and {ceiling}")
    return value


class GeneratePreferences(BaseModel):
    min_count: int = 5
    difficulty: DifficultyChoice = "medium"
    custom_prompt: str = ""
    preview_mode: bool = False

    @field_validator("min_count")
    @classmethod
    def _count_in_range(cls, v: int) -> int:
        return _check_count(v, settings.limits.max_generate_count)

    def to_request(self, source_text: str) -> GenerationRequest:
        return GenerationRequest(
            source_text=source_text,
            requested_count=self.min_count,
            difficulty=Difficulty.coerce(self.difficulty),
            custom_instructions=self.custom_prompt.strip() or None,
        )


class ReforgePreferences(BaseModel):
    action: ReforgeAction = ReforgeAction.ADD_MORE
    min_count: int = 3
    difficulty: DifficultyChoice = "medium"
    use_selected_section: bool = False
    preview_mode: bool = False

    @field_validator("min_count")
    @classmethod
    def _count_in_range(cls, v: int) -> int:
        return _check_count(v, settings.limits.max_reforge_count)

    def to_request(self, source_text: str, existing_questions: list[str]) -> GenerationRequest:
        return GenerationRequest(
            source_text=source_text,
            requested_count=self.min_count,
            difficulty=Difficulty.coerce(self.difficulty),
            dedupe_context=existing_questions or None,
        )


Preferences = Union[GeneratePreferences, ReforgePreferences]

_MODELS: dict[PreferenceKind, type[BaseModel]] = {
    PreferenceKind.GENERATE: GeneratePreferences,
    PreferenceKind.REFORGE: ReforgePreferences,
}


def load_preferences(kind: PreferenceKind, stored: Optional[dict[str, Any]]) -> Preferences:
    """Stored values over defaults; unknown keys dropped, bad data ignored."""
    model = _MODELS[PreferenceKind(kind)]
    defaults = model()
    if not stored:
        return defaults  # type: ignore[return-value]
    known = {k: v for k, v in stored.items() if k in model.model_fields}
    try:
        return model.model_validate({**defaults.model_dump(), **known})  # type: ignore[return-value]
    except PydanticValidationError as e:
        logger.warning(f"Ignoring invalid saved {PreferenceKind(kind).value} preferences: {e}")
        return defaults  # type: ignore[return-value]


def merge_preferences(current: Preferences, update: dict[str, Any]) -> Preferences:
    """Apply a partial update; raises ValidationError on bad values."""
    model = type(current)
    unknown = sorted(set(update) - set(model.model_fields))
    if unknown:
        raise ValidationError(f"Unknown preference: {', '.join(unknown)}", field=unknown[0])
    try:
        return model.model_validate({**current.model_dump(), **update})
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        cause = first.get("ctx", {}).get("error")
        message = str(cause) if cause else f"Invalid preference value: {first.get('msg')}"
        raise ValidationError(message, field=field) from e
