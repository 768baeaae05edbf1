from .flashcards import (
    Difficulty,
    Flashcard,
    GenerationConfig,
    GenerationRequest,
    GenerationResult,
)

__all__ = [
    "Difficulty",
    "Flashcard",
    "GenerationConfig",
    "GenerationRequest",
    "GenerationResult",
]
