from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from app.core.db.schemas.auth import User
from app.modules.auth import current_active_user
from app.modules.flashcards.main import FlashcardsGenerator


CurrentUser = Annotated[User, Depends(current_active_user)]


def get_flashcards_generator() -> FlashcardsGenerator:
    """Generation service backed by the configured Gemini client.

    Overridden in tests to point at a mock transport.
    """
    return FlashcardsGenerator()


FlashcardsService = Annotated[FlashcardsGenerator, Depends(get_flashcards_generator)]
