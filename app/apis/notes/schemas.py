from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


NoteStatusValue = Literal["draft", "published", "archived"]


class NoteCreate(BaseModel):
    title: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)


class NoteUpdate(BaseModel):
    title: str = Field(..., description="Notes without a title are not saved")
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    status: Optional[NoteStatusValue] = None
    is_public: Optional[bool] = None


class NoteRead(BaseModel):
    id: int
    title: str
    content: str
    status: str
    tags: list[str] = Field(default_factory=list)
    is_public: bool
    created_at: str
    updated_at: str
