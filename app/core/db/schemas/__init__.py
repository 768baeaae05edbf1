# Import models so Alembic and Base metadata are aware of them
from .auth import User  # noqa: F401
from .notes import Note, NoteStatus  # noqa: F401
from .flashcards import (  # noqa: F401
    FlashcardSet,
    Flashcard,
    FlashcardStatus,
    GenerationRequestLog,
    GenerationStatus,
)
from .preferences import UserGenerationPreferences  # noqa: F401
