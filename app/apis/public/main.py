from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db.base import get_session
from app.core.db_services import FlashcardSetService
from app.apis.flashcards.main import set_read
from app.apis.flashcards.schemas import FlashcardSetRead


router = APIRouter()


@router.get(
    f"/{settings.app.version}/public/flashcards/{{set_id:int}}",
    response_model=FlashcardSetRead,
    tags=["public"],
)
async def get_public_flashcard_set(
    set_id: int,
    session: AsyncSession = Depends(get_session),
) -> FlashcardSetRead:
    """Read-only view of a shared set; no login required."""
    service = FlashcardSetService(session)
    s = await service.get_public_set(set_id)
    if not s:
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    return await set_read(service, s)
