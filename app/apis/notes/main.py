from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db.base import get_session
from app.core.db.schemas.auth import User
from app.core.db.schemas.notes import Note, NoteStatus
from app.core.db_services import NoteService
from app.modules.auth import current_active_user
from app.modules.flashcards.errors import ValidationError
from .schemas import NoteCreate, NoteRead, NoteUpdate


router = APIRouter()

CurrentUser = Annotated[User, Depends(current_active_user)]


def _note_read(note: Note) -> NoteRead:
    return NoteRead(
        id=note.id,
        title=note.title,
        content=note.content,
        status=note.status.value,
        tags=note.tags or [],
        is_public=note.is_public,
        created_at=note.created_at.isoformat(),
        updated_at=note.updated_at.isoformat(),
    )


@router.post(
    f"/{settings.app.version}/notes",
    response_model=NoteRead,
    status_code=status.HTTP_201_CREATED,
    tags=["notes"],
)
async def create_note(
    req: NoteCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> NoteRead:
    note = await NoteService(session).create_note(
        user.id, title=req.title, content=req.content, tags=req.tags
    )
    return _note_read(note)


@router.get(
    f"/{settings.app.version}/notes",
    response_model=list[NoteRead],
    tags=["notes"],
)
async def list_notes(
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> list[NoteRead]:
    notes = await NoteService(session).list_notes(user.id)
    return [_note_read(n) for n in notes]


@router.get(
    f"/{settings.app.version}/notes/{{note_id:int}}",
    response_model=NoteRead,
    tags=["notes"],
)
async def get_note(
    note_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> NoteRead:
    note = await NoteService(session).get_note(user.id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return _note_read(note)


@router.put(
    f"/{settings.app.version}/notes/{{note_id:int}}",
    response_model=NoteRead,
    tags=["notes"],
)
async def update_note(
    note_id: int,
    req: NoteUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> NoteRead:
    service = NoteService(session)
    note = await service.get_note(user.id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    updated = await service.update_note(
        note,
        title=req.title.strip(),
        content=req.content,
        tags=req.tags,
        status=NoteStatus(req.status) if req.status else None,
        is_public=req.is_public,
    )
    if updated is None:
        raise ValidationError("Title is required", field="title")
    return _note_read(updated)


@router.delete(
    f"/{settings.app.version}/notes/{{note_id:int}}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["notes"],
)
async def delete_note(
    note_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> Response:
    if not await NoteService(session).delete_note(user.id, note_id):
        raise HTTPException(status_code=404, detail="Note not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
