"""Database service classes for notes, flashcard sets and study progress."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.schemas.flashcards import (
    Flashcard,
    FlashcardSet,
    FlashcardStatus,
    GenerationRequestLog,
    GenerationStatus,
)
from app.core.db.schemas.notes import Note, NoteStatus
from app.core.db.schemas.preferences import UserGenerationPreferences
from app.core.logging import get_logger
from app.modules.flashcards.models.flashcards import (
    Flashcard as PydanticFlashcard,
    GenerationResult,
)
from app.modules.flashcards.parser import format_multiple_choice_question
from app.modules.flashcards.preferences import (
    PreferenceKind,
    Preferences,
    load_preferences,
    merge_preferences,
)
from app.modules.flashcards.reforge import ReforgeAction, expected_total

logger = get_logger(__name__)


def _percentage(part: int, whole: int) -> int:
    if not whole:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


@dataclass
class SetProgress:
    total: int
    mastered: int
    percentage: int


@dataclass
class CardNavigation:
    index: int
    total: int
    previous_id: Optional[int]
    next_id: Optional[int]
    is_last: bool


@dataclass
class DashboardStats:
    notes: int
    flashcard_sets: int
    total_cards: int
    mastered_cards: int
    mastery_percentage: int


class NoteService:
    """Service for note CRUD scoped to a single owner."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_note(
        self,
        user_id: int,
        title: str = "",
        content: str = "",
        tags: Optional[list[str]] = None,
    ) -> Note:
        note = Note(user_id=user_id, title=title, content=content, tags=tags or [])
        self.session.add(note)
        await self.session.commit()
        await self.session.refresh(note)
        return note

    async def get_note(self, user_id: int, note_id: int) -> Optional[Note]:
        result = await self.session.execute(
            select(Note).where(Note.id == note_id, Note.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_notes(self, user_id: int) -> Sequence[Note]:
        result = await self.session.execute(
            select(Note)
            .where(Note.user_id == user_id)
            .order_by(Note.updated_at.desc(), Note.id.desc())
        )
        return result.scalars().all()

    async def update_note(
        self,
        note: Note,
        *,
        title: str,
        content: str,
        tags: Optional[list[str]] = None,
        status: Optional[NoteStatus] = None,
        is_public: Optional[bool] = None,
    ) -> Optional[Note]:
        """Save note fields. Notes without a title are not saved (returns None)."""
        if not title:
            return None
        note.title = title
        note.content = content
        note.tags = tags or []
        if status is not None:
            note.status = status
        if is_public is not None:
            note.is_public = is_public
        note.updated_at = datetime.now()
        await self.session.commit()
        await self.session.refresh(note)
        return note

    async def delete_note(self, user_id: int, note_id: int) -> bool:
        note = await self.get_note(user_id, note_id)
        if not note:
            return False
        # Sets and cards outlive their source note
        for model in (FlashcardSet, Flashcard, GenerationRequestLog):
            await self.session.execute(
                update(model).where(model.note_id == note_id).values(note_id=None)
            )
        await self.session.execute(delete(Note).where(Note.id == note_id))
        await self.session.commit()
        return True


class FlashcardSetService:
    """Service for flashcard sets, their cards and study progress."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_flashcard_set(
        self,
        *,
        user_id: int,
        note_id: Optional[int],
        title: str,
        description: Optional[str] = None,
        commit: bool = True,
    ) -> FlashcardSet:
        db_set = FlashcardSet(
            user_id=user_id,
            note_id=note_id,
            title=title,
            description=description,
            total_cards=0,
            mastered_cards=0,
        )
        self.session.add(db_set)
        if not commit:
            await self.session.flush()
            return db_set
        await self.session.commit()
        await self.session.refresh(db_set)
        return db_set

    async def _next_order_index(self, set_id: int) -> int:
        result = await self.session.execute(
            select(func.max(Flashcard.order_index)).where(Flashcard.set_id == set_id)
        )
        current = result.scalar()
        return 0 if current is None else current + 1

    async def add_flashcards(
        self,
        *,
        set_id: int,
        note_id: Optional[int],
        cards: Sequence[PydanticFlashcard],
        commit: bool = True,
    ) -> None:
        """Bulk insert cards after any the set already has."""
        start = await self._next_order_index(set_id)
        self.session.add_all(
            [
                Flashcard(
                    set_id=set_id,
                    note_id=note_id,
                    question=format_multiple_choice_question(card.question.strip()).strip(),
                    answer=card.answer.strip(),
                    status=FlashcardStatus.NEW,
                    difficulty_level=card.difficulty.level,
                    order_index=start + offset,
                    review_count=0,
                    correct_count=0,
                )
                for offset, card in enumerate(cards)
            ]
        )
        if commit:
            await self.session.commit()

    async def delete_all_flashcards(self, set_id: int, *, commit: bool = True) -> None:
        await self.session.execute(delete(Flashcard).where(Flashcard.set_id == set_id))
        if commit:
            await self.session.commit()

    async def update_total_cards(self, set_id: int, total: int, *, commit: bool = True) -> None:
        await self.session.execute(
            update(FlashcardSet)
            .where(FlashcardSet.id == set_id)
            .values(total_cards=total, updated_at=datetime.now())
        )
        if commit:
            await self.session.commit()

    async def _count_cards(self, set_id: int, status: Optional[FlashcardStatus] = None) -> int:
        query = select(func.count(Flashcard.id)).where(Flashcard.set_id == set_id)
        if status is not None:
            query = query.where(Flashcard.status == status)
        return (await self.session.execute(query)).scalar() or 0

    async def refresh_mastered_count(self, set_id: int, *, commit: bool = True) -> int:
        mastered = await self._count_cards(set_id, FlashcardStatus.MASTERED)
        await self.session.execute(
            update(FlashcardSet)
            .where(FlashcardSet.id == set_id)
            .values(mastered_cards=mastered, updated_at=datetime.now())
        )
        if commit:
            await self.session.commit()
        return mastered

    async def save_generated_flashcards(
        self,
        *,
        user_id: int,
        note: Optional[Note],
        cards: Sequence[PydanticFlashcard],
    ) -> FlashcardSet:
        """Create a set for ``note`` holding ``cards`` in one transaction."""
        note_title = note.title if note else ""
        title = f"Flashcards from: {note_title}" if note_title else "Generated Flashcards"
        db_set = await self.create_flashcard_set(
            user_id=user_id,
            note_id=note.id if note else None,
            title=title,
            description="AI-generated flashcards from note content",
            commit=False,
        )
        await self.add_flashcards(
            set_id=db_set.id, note_id=db_set.note_id, cards=cards, commit=False
        )
        await self.update_total_cards(db_set.id, len(cards), commit=False)
        await self.session.commit()
        await self.session.refresh(db_set)
        logger.info(
            f"Saved {len(cards)} flashcards", extra={"user_id": user_id, "set_id": db_set.id}
        )
        return db_set

    async def apply_reforge(
        self,
        *,
        db_set: FlashcardSet,
        generated: Sequence[PydanticFlashcard],
        action: ReforgeAction,
    ) -> Sequence[Flashcard]:
        """Replace or extend the set's cards; returns the cards now in the set.

        Delete, insert and counters commit together, so a failed insert
        leaves the set as it was.
        """
        action = ReforgeAction(action)
        existing_count = await self._count_cards(db_set.id)
        if action is ReforgeAction.REGENERATE:
            await self.delete_all_flashcards(db_set.id, commit=False)
        await self.add_flashcards(
            set_id=db_set.id, note_id=db_set.note_id, cards=generated, commit=False
        )
        await self.update_total_cards(
            db_set.id, expected_total(existing_count, len(generated), action), commit=False
        )
        await self.refresh_mastered_count(db_set.id, commit=False)
        await self.session.commit()
        await self.session.refresh(db_set)
        logger.info(
            f"Reforged set ({action.value}): total={db_set.total_cards}",
            extra={"user_id": db_set.user_id, "set_id": db_set.id},
        )
        return await self.list_flashcards(db_set.id)

    async def list_sets(self, user_id: int) -> Sequence[FlashcardSet]:
        result = await self.session.execute(
            select(FlashcardSet)
            .where(FlashcardSet.user_id == user_id)
            .order_by(FlashcardSet.created_at.desc(), FlashcardSet.id.desc())
        )
        return result.scalars().all()

    async def get_set(self, user_id: int, set_id: int) -> Optional[FlashcardSet]:
        result = await self.session.execute(
            select(FlashcardSet).where(
                FlashcardSet.id == set_id, FlashcardSet.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def get_public_set(self, set_id: int) -> Optional[FlashcardSet]:
        result = await self.session.execute(
            select(FlashcardSet).where(
                FlashcardSet.id == set_id, FlashcardSet.is_public.is_(True)
            )
        )
        return result.scalar_one_or_none()

    async def set_public(self, db_set: FlashcardSet, is_public: bool) -> FlashcardSet:
        db_set.is_public = is_public
        await self.session.commit()
        await self.session.refresh(db_set)
        return db_set

    async def delete_set(self, user_id: int, set_id: int) -> bool:
        db_set = await self.get_set(user_id, set_id)
        if not db_set:
            return False
        await self.session.execute(delete(Flashcard).where(Flashcard.set_id == set_id))
        await self.session.execute(delete(FlashcardSet).where(FlashcardSet.id == set_id))
        await self.session.commit()
        return True

    async def list_flashcards(self, set_id: int) -> Sequence[Flashcard]:
        result = await self.session.execute(
            select(Flashcard)
            .where(Flashcard.set_id == set_id)
            .order_by(Flashcard.order_index, Flashcard.id)
        )
        return result.scalars().all()

    async def get_first_card(self, set_id: int) -> Optional[Flashcard]:
        result = await self.session.execute(
            select(Flashcard)
            .where(Flashcard.set_id == set_id)
            .order_by(Flashcard.order_index, Flashcard.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_flashcard(self, user_id: int, flashcard_id: int) -> Optional[Flashcard]:
        result = await self.session.execute(
            select(Flashcard)
            .join(FlashcardSet, Flashcard.set_id == FlashcardSet.id)
            .where(Flashcard.id == flashcard_id, FlashcardSet.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def mark_mastered(self, card: Flashcard) -> Flashcard:
        card.status = FlashcardStatus.MASTERED
        card.last_reviewed = datetime.now()
        await self.session.commit()
        await self.refresh_mastered_count(card.set_id)
        await self.session.refresh(card)
        return card

    async def record_review(
        self,
        card: Flashcard,
        *,
        was_correct: bool,
        status: Optional[FlashcardStatus] = None,
    ) -> Flashcard:
        card.review_count += 1
        if was_correct:
            card.correct_count += 1
        if status is not None:
            card.status = status
        card.last_reviewed = datetime.now()
        await self.session.commit()
        await self.refresh_mastered_count(card.set_id)
        await self.session.refresh(card)
        return card

    async def get_set_progress(self, set_id: int) -> SetProgress:
        total = await self._count_cards(set_id)
        mastered = await self._count_cards(set_id, FlashcardStatus.MASTERED)
        return SetProgress(
            total=total, mastered=mastered, percentage=_percentage(mastered, total)
        )

    async def get_navigation(self, card: Flashcard) -> CardNavigation:
        result = await self.session.execute(
            select(Flashcard.id)
            .where(Flashcard.set_id == card.set_id)
            .order_by(Flashcard.order_index, Flashcard.id)
        )
        ids = list(result.scalars().all())
        index = ids.index(card.id)
        return CardNavigation(
            index=index,
            total=len(ids),
            previous_id=ids[index - 1] if index > 0 else None,
            next_id=ids[index + 1] if index < len(ids) - 1 else None,
            is_last=index == len(ids) - 1,
        )


class GenerationLogService:
    """Records each generation attempt with its token and cost estimate."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log_request(
        self,
        *,
        user_id: int,
        note_id: Optional[int],
        prompt: str,
        result: Optional[GenerationResult] = None,
        status: GenerationStatus = GenerationStatus.COMPLETED,
        error_message: Optional[str] = None,
    ) -> Optional[GenerationRequestLog]:
        entry = GenerationRequestLog(
            user_id=user_id,
            note_id=note_id,
            request_type="flashcard_generation",
            prompt=prompt,
            response=json.dumps(
                [c.model_dump(mode="json") for c in result.flashcards]
            )
            if result
            else None,
            status=status,
            tokens_used=result.estimated_tokens if result else None,
            cost_cents=result.estimated_cost_cents if result else None,
            error_message=error_message,
            completed_at=datetime.now(),
        )
        try:
            self.session.add(entry)
            await self.session.commit()
        except SQLAlchemyError as e:
            # A failed log write never fails the caller
            await self.session.rollback()
            logger.error(f"Error logging generation request: {e}")
            return None
        return entry


class PreferencesService:
    """Load and save per-user generate/reforge preferences."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_row(
        self, user_id: int, kind: PreferenceKind
    ) -> Optional[UserGenerationPreferences]:
        result = await self.session.execute(
            select(UserGenerationPreferences).where(
                UserGenerationPreferences.user_id == user_id,
                UserGenerationPreferences.kind == PreferenceKind(kind).value,
            )
        )
        return result.scalar_one_or_none()

    async def load(self, user_id: int, kind: PreferenceKind) -> Preferences:
        row = await self._get_row(user_id, kind)
        return load_preferences(kind, row.data if row else None)

    async def save(self, user_id: int, kind: PreferenceKind, prefs: Preferences) -> Preferences:
        data: dict[str, Any] = prefs.model_dump(mode="json")
        row = await self._get_row(user_id, kind)
        if row:
            row.data = data
        else:
            self.session.add(
                UserGenerationPreferences(
                    user_id=user_id, kind=PreferenceKind(kind).value, data=data
                )
            )
        await self.session.commit()
        return prefs

    async def update(
        self, user_id: int, kind: PreferenceKind, changes: dict[str, Any]
    ) -> Preferences:
        current = await self.load(user_id, kind)
        return await self.save(user_id, kind, merge_preferences(current, changes))


class DashboardService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_stats(self, user_id: int) -> DashboardStats:
        notes = (
            await self.session.execute(
                select(func.count(Note.id)).where(Note.user_id == user_id)
            )
        ).scalar() or 0
        sets = (
            await self.session.execute(
                select(func.count(FlashcardSet.id)).where(FlashcardSet.user_id == user_id)
            )
        ).scalar() or 0
        cards_query = (
            select(func.count(Flashcard.id))
            .join(FlashcardSet, Flashcard.set_id == FlashcardSet.id)
            .where(FlashcardSet.user_id == user_id)
        )
        total = (await self.session.execute(cards_query)).scalar() or 0
        mastered = (
            await self.session.execute(
                cards_query.where(Flashcard.status == FlashcardStatus.MASTERED)
            )
        ).scalar() or 0
        return DashboardStats(
            notes=notes,
            flashcard_sets=sets,
            total_cards=total,
            mastered_cards=mastered,
            mastery_percentage=_percentage(mastered, total),
        )
