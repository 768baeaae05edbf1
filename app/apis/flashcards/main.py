from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db.base import get_session
from app.core.db.schemas.flashcards import (
    Flashcard as DBFlashcard,
    FlashcardSet as DBSet,
    FlashcardStatus,
)
from app.core.db_services import (
    FlashcardSetService,
    NoteService,
    PreferencesService,
)
from app.core.logging import get_logger
from app.apis.deps import CurrentUser, FlashcardsService
from app.modules.flashcards.errors import ValidationError
from app.modules.flashcards.preferences import PreferenceKind, merge_preferences
from .schemas import (
    CardNavigationRead,
    FlashcardIn,
    FlashcardRead,
    FlashcardSetRead,
    FlashcardSetSummary,
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
    PreferencesRead,
    ReforgeRequest,
    ReforgeResponse,
    ReviewRequest,
    SaveFlashcardsRequest,
    SetProgressRead,
    SharingUpdate,
    StudyCardRead,
)


router = APIRouter()

logger = get_logger(__name__)


def card_read(c: DBFlashcard) -> FlashcardRead:
    return FlashcardRead(
        id=c.id,
        question=c.question,
        answer=c.answer,
        status=c.status.value,
        difficulty_level=c.difficulty_level,
        order_index=c.order_index,
        review_count=c.review_count,
        correct_count=c.correct_count,
        last_reviewed=c.last_reviewed.isoformat() if c.last_reviewed else None,
    )


def set_summary(s: DBSet) -> FlashcardSetSummary:
    return FlashcardSetSummary(
        id=s.id,
        note_id=s.note_id,
        title=s.title,
        description=s.description,
        total_cards=s.total_cards,
        mastered_cards=s.mastered_cards,
        is_public=s.is_public,
        created_at=s.created_at.isoformat(),
        updated_at=s.updated_at.isoformat() if s.updated_at else None,
    )


async def set_read(service: FlashcardSetService, s: DBSet) -> FlashcardSetRead:
    cards = await service.list_flashcards(s.id)
    return FlashcardSetRead(
        **set_summary(s).model_dump(),
        flashcards=[card_read(c) for c in cards],
    )


async def study_card(service: FlashcardSetService, card: DBFlashcard) -> StudyCardRead:
    navigation = await service.get_navigation(card)
    progress = await service.get_set_progress(card.set_id)
    return StudyCardRead(
        card=card_read(card),
        navigation=CardNavigationRead(**navigation.__dict__),
        progress=SetProgressRead(**progress.__dict__),
    )


def _overrides(req: Any, *, exclude: set[str]) -> dict[str, Any]:
    return req.model_dump(mode="json", exclude_none=True, exclude=exclude)


@router.post(
    f"/{settings.app.version}/notes/{{note_id:int}}/flashcards/generate",
    response_model=GenerateFlashcardsResponse,
    tags=["flashcards"],
)
async def generate_flashcards_for_note(
    note_id: int,
    req: GenerateFlashcardsRequest,
    user: CurrentUser,
    generator: FlashcardsService,
    session: AsyncSession = Depends(get_session),
) -> GenerateFlashcardsResponse:
    note = await NoteService(session).get_note(user.id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")

    prefs_service = PreferencesService(session)
    saved = await prefs_service.load(user.id, PreferenceKind.GENERATE)
    prefs = merge_preferences(saved, _overrides(req, exclude=set()))
    await prefs_service.save(user.id, PreferenceKind.GENERATE, prefs)

    outcome = await generator.generate_with_db(
        session, user_id=user.id, note=note, preferences=prefs
    )
    return GenerateFlashcardsResponse(
        preview=outcome.preview,
        flashcards=[FlashcardIn(**c.model_dump()) for c in outcome.result.flashcards],
        estimated_tokens=outcome.result.estimated_tokens,
        estimated_cost_cents=outcome.result.estimated_cost_cents,
        flashcard_set=set_summary(outcome.flashcard_set) if outcome.flashcard_set else None,
    )


@router.post(
    f"/{settings.app.version}/flashcards/sets",
    response_model=FlashcardSetRead,
    status_code=status.HTTP_201_CREATED,
    tags=["flashcards"],
)
async def save_flashcard_set(
    req: SaveFlashcardsRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> FlashcardSetRead:
    note = None
    if req.note_id is not None:
        note = await NoteService(session).get_note(user.id, req.note_id)
        if not note:
            raise HTTPException(status_code=404, detail="Note not found")
    service = FlashcardSetService(session)
    db_set = await service.save_generated_flashcards(
        user_id=user.id, note=note, cards=req.flashcards
    )
    return await set_read(service, db_set)


@router.post(
    f"/{settings.app.version}/flashcards/sets/{{set_id:int}}/reforge",
    response_model=ReforgeResponse,
    tags=["flashcards"],
)
async def reforge_flashcard_set(
    set_id: int,
    req: ReforgeRequest,
    user: CurrentUser,
    generator: FlashcardsService,
    session: AsyncSession = Depends(get_session),
) -> ReforgeResponse:
    service = FlashcardSetService(session)
    db_set = await service.get_set(user.id, set_id)
    if not db_set:
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    if req.flashcards is not None and not req.flashcards:
        raise ValidationError("At least one flashcard is required", field="flashcards")

    prefs_service = PreferencesService(session)
    saved = await prefs_service.load(user.id, PreferenceKind.REFORGE)
    prefs = merge_preferences(
        saved, _overrides(req, exclude={"selected_section", "flashcards"})
    )
    await prefs_service.save(user.id, PreferenceKind.REFORGE, prefs)

    if req.flashcards is not None:
        outcome = await generator.apply_previewed_reforge(
            session, db_set=db_set, cards=req.flashcards, preferences=prefs
        )
        generated = list(req.flashcards)
    else:
        note = None
        if db_set.note_id is not None:
            note = await NoteService(session).get_note(user.id, db_set.note_id)
        outcome = await generator.reforge_with_db(
            session,
            user_id=user.id,
            db_set=db_set,
            note_content=note.content if note else "",
            preferences=prefs,
            selected_section=req.selected_section,
        )
        generated = [FlashcardIn(**c.model_dump()) for c in outcome.result.flashcards]

    return ReforgeResponse(
        preview=outcome.preview,
        action=prefs.action,
        generated=generated,
        estimated_tokens=outcome.result.estimated_tokens if outcome.result else 0,
        estimated_cost_cents=outcome.result.estimated_cost_cents if outcome.result else 0,
        flashcard_set=await set_read(service, outcome.flashcard_set),
    )


@router.get(
    f"/{settings.app.version}/flashcards/sets",
    response_model=list[FlashcardSetSummary],
    tags=["flashcards"],
)
async def list_flashcard_sets(
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> list[FlashcardSetSummary]:
    sets = await FlashcardSetService(session).list_sets(user.id)
    return [set_summary(s) for s in sets]


@router.get(
    f"/{settings.app.version}/flashcards/sets/{{set_id:int}}",
    response_model=FlashcardSetRead,
    tags=["flashcards"],
)
async def get_flashcard_set(
    set_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> FlashcardSetRead:
    service = FlashcardSetService(session)
    s = await service.get_set(user.id, set_id)
    if not s:
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    return await set_read(service, s)


@router.delete(
    f"/{settings.app.version}/flashcards/sets/{{set_id:int}}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["flashcards"],
)
async def delete_flashcard_set(
    set_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> Response:
    if not await FlashcardSetService(session).delete_set(user.id, set_id):
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    f"/{settings.app.version}/flashcards/sets/{{set_id:int}}/progress",
    response_model=SetProgressRead,
    tags=["flashcards"],
)
async def get_set_progress(
    set_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> SetProgressRead:
    service = FlashcardSetService(session)
    if not await service.get_set(user.id, set_id):
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    progress = await service.get_set_progress(set_id)
    return SetProgressRead(**progress.__dict__)


@router.patch(
    f"/{settings.app.version}/flashcards/sets/{{set_id:int}}/sharing",
    response_model=FlashcardSetSummary,
    tags=["flashcards"],
)
async def update_set_sharing(
    set_id: int,
    req: SharingUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> FlashcardSetSummary:
    service = FlashcardSetService(session)
    s = await service.get_set(user.id, set_id)
    if not s:
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    s = await service.set_public(s, req.is_public)
    logger.info(
        f"Sharing changed: public={s.is_public}",
        extra={"user_id": user.id, "set_id": s.id},
    )
    return set_summary(s)


@router.get(
    f"/{settings.app.version}/flashcards/sets/{{set_id:int}}/first",
    response_model=StudyCardRead,
    tags=["flashcards"],
)
async def get_first_card(
    set_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> StudyCardRead:
    service = FlashcardSetService(session)
    if not await service.get_set(user.id, set_id):
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    card = await service.get_first_card(set_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard set has no cards")
    return await study_card(service, card)


@router.get(
    f"/{settings.app.version}/flashcards/cards/{{card_id:int}}",
    response_model=StudyCardRead,
    tags=["flashcards"],
)
async def get_flashcard(
    card_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> StudyCardRead:
    service = FlashcardSetService(session)
    card = await service.get_flashcard(user.id, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return await study_card(service, card)


@router.post(
    f"/{settings.app.version}/flashcards/cards/{{card_id:int}}/mastered",
    response_model=StudyCardRead,
    tags=["flashcards"],
)
async def mark_card_mastered(
    card_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> StudyCardRead:
    service = FlashcardSetService(session)
    card = await service.get_flashcard(user.id, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    card = await service.mark_mastered(card)
    return await study_card(service, card)


@router.post(
    f"/{settings.app.version}/flashcards/cards/{{card_id:int}}/review",
    response_model=StudyCardRead,
    tags=["flashcards"],
)
async def review_card(
    card_id: int,
    req: ReviewRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> StudyCardRead:
    service = FlashcardSetService(session)
    card = await service.get_flashcard(user.id, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    card = await service.record_review(
        card,
        was_correct=req.was_correct,
        status=FlashcardStatus(req.status) if req.status else None,
    )
    return await study_card(service, card)


@router.get(
    f"/{settings.app.version}/flashcards/preferences/{{kind}}",
    response_model=PreferencesRead,
    tags=["flashcards"],
)
async def get_preferences(
    kind: PreferenceKind,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> PreferencesRead:
    prefs = await PreferencesService(session).load(user.id, kind)
    return PreferencesRead(kind=kind, preferences=prefs.model_dump(mode="json"))


@router.put(
    f"/{settings.app.version}/flashcards/preferences/{{kind}}",
    response_model=PreferencesRead,
    tags=["flashcards"],
)
async def update_preferences(
    kind: PreferenceKind,
    user: CurrentUser,
    changes: dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
) -> PreferencesRead:
    prefs = await PreferencesService(session).update(user.id, kind, changes)
    return PreferencesRead(kind=kind, preferences=prefs.model_dump(mode="json"))
