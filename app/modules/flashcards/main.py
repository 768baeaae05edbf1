"""Flashcards service class and simple module entrypoint.

Ties the generator to persistence: generate from a note and save a set,
or reforge an existing set. Used by the API handlers and the CLI.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db.schemas.flashcards import (
    Flashcard as DBFlashcard,
    FlashcardSet as DBFlashcardSet,
    GenerationStatus,
)
from app.core.db.schemas.notes import Note
from app.core.logging import get_logger
from app.modules.flashcards.errors import ParseError, UpstreamError
from app.modules.flashcards.generator import FlashcardGenerator
from app.modules.flashcards.models.flashcards import (
    Difficulty,
    Flashcard,
    GenerationRequest,
    GenerationResult,
)
from app.modules.flashcards.preferences import GeneratePreferences, ReforgePreferences
from app.modules.flashcards.reforge import build_dedupe_context, resolve_source_text

logger = get_logger(__name__)


def summarize_request(request: GenerationRequest) -> str:
    """Short description stored with each generation log row."""
    return (
        f"Generate {request.requested_count} {request.difficulty.value} "
        "flashcards from note content"
    )


@dataclass
class GenerateOutcome:
    result: GenerationResult
    flashcard_set: Optional[DBFlashcardSet] = None

    @property
    def preview(self) -> bool:
        return self.flashcard_set is None


@dataclass
class ReforgeOutcome:
    result: Optional[GenerationResult]
    flashcard_set: DBFlashcardSet
    cards: Sequence[DBFlashcard] = field(default_factory=list)
    preview: bool = False


class FlashcardsGenerator:
    """High-level flashcard service for API handlers and the CLI."""

    def __init__(self, generator: Optional[FlashcardGenerator] = None) -> None:
        self.generator = generator or FlashcardGenerator.from_settings()

    async def _generate_logged(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        note_id: Optional[int],
        request: GenerationRequest,
        max_count: int,
    ) -> GenerationResult:
        from app.core.db_services import GenerationLogService

        log_service = GenerationLogService(session)
        summary = summarize_request(request)
        try:
            result = await self.generator.generate(request, max_count=max_count)
        except (UpstreamError, ParseError) as e:
            logger.warning(f"Generation failed: {e.message}", extra={"user_id": user_id})
            await log_service.log_request(
                user_id=user_id,
                note_id=note_id,
                prompt=summary,
                status=GenerationStatus.FAILED,
                error_message=e.message,
            )
            raise
        await log_service.log_request(
            user_id=user_id, note_id=note_id, prompt=summary, result=result
        )
        return result

    async def generate_with_db(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        note: Note,
        preferences: GeneratePreferences,
        preview: Optional[bool] = None,
    ) -> GenerateOutcome:
        """Generate cards from ``note``; saves a new set unless previewing."""
        from app.core.db_services import FlashcardSetService

        request = preferences.to_request(note.content or "")
        result = await self._generate_logged(
            session,
            user_id=user_id,
            note_id=note.id,
            request=request,
            max_count=settings.limits.max_generate_count,
        )
        if preferences.preview_mode if preview is None else preview:
            return GenerateOutcome(result=result)

        db_set = await FlashcardSetService(session).save_generated_flashcards(
            user_id=user_id, note=note, cards=result.flashcards
        )
        return GenerateOutcome(result=result, flashcard_set=db_set)

    async def reforge_with_db(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        db_set: DBFlashcardSet,
        note_content: str,
        preferences: ReforgePreferences,
        selected_section: Optional[str] = None,
        preview: Optional[bool] = None,
    ) -> ReforgeOutcome:
        """Regenerate or extend ``db_set`` from the note (or a selected section)."""
        from app.core.db_services import FlashcardSetService

        set_service = FlashcardSetService(session)
        source_text = resolve_source_text(
            note_content, selected_section, preferences.use_selected_section
        )
        existing = await set_service.list_flashcards(db_set.id)
        request = preferences.to_request(source_text, build_dedupe_context(existing))
        result = await self._generate_logged(
            session,
            user_id=user_id,
            note_id=db_set.note_id,
            request=request,
            max_count=settings.limits.max_reforge_count,
        )
        if preferences.preview_mode if preview is None else preview:
            return ReforgeOutcome(
                result=result, flashcard_set=db_set, cards=existing, preview=True
            )

        cards = await set_service.apply_reforge(
            db_set=db_set, generated=result.flashcards, action=preferences.action
        )
        return ReforgeOutcome(result=result, flashcard_set=db_set, cards=cards)

    async def apply_previewed_reforge(
        self,
        session: AsyncSession,
        *,
        db_set: DBFlashcardSet,
        cards: Sequence[Flashcard],
        preferences: ReforgePreferences,
    ) -> ReforgeOutcome:
        """Write cards the caller already reviewed in preview mode."""
        from app.core.db_services import FlashcardSetService

        saved = await FlashcardSetService(session).apply_reforge(
            db_set=db_set, generated=cards, action=preferences.action
        )
        return ReforgeOutcome(result=None, flashcard_set=db_set, cards=saved)

    async def generate(
        self,
        source_text: str,
        *,
        count: int = 10,
        difficulty: str = "medium",
        instructions: Optional[str] = None,
        existing: Optional[list[str]] = None,
    ) -> GenerationResult:
        request = GenerationRequest(
            source_text=source_text,
            requested_count=count,
            difficulty=Difficulty.coerce(difficulty),
            custom_instructions=instructions or None,
            dedupe_context=existing or None,
        )
        return await self.generator.generate(request)

    def generate_sync(self, source_text: str, **kwargs) -> GenerationResult:
        return asyncio.run(self.generate(source_text, **kwargs))

    async def check_key(self) -> bool:
        self.generator.client.ensure_configured()
        return await self.generator.client.validate_api_key()

    @staticmethod
    def to_jsonable(result: GenerationResult) -> dict:
        return result.model_dump(mode="json")


__all__ = [
    "FlashcardsGenerator",
    "GenerateOutcome",
    "ReforgeOutcome",
    "summarize_request",
]
